from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class OtpRecordDto:
    id: str
    phone_number: str
    code: str
    purpose: str
    verified: bool
    attempts: int
    expires_at: datetime
    created_at: datetime


class OtpRepository:
    def create(self, phone_number: str, code: str, purpose: str, expires_at: datetime) -> OtpRecordDto:
        ...

    def latest_unverified(self, phone_number: str) -> Optional[OtpRecordDto]:
        ...

    def delete(self, record_id: str) -> None:
        ...

    def delete_unverified(self, phone_number: str) -> int:
        ...

    def purge_expired(self, now: datetime) -> int:
        ...

    def increment_attempts(self, record_id: str) -> int:
        ...

    def mark_verified(self, record_id: str) -> None:
        ...


