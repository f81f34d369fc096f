from datetime import datetime
from typing import Optional
from sqlalchemy import delete, update
from sqlmodel import Session, select

from .....db.models import OtpRecord
from .....utils import as_utc, utcnow
from .....application.ports.otp_repo import OtpRepository, OtpRecordDto

class SqlOtpRepository(OtpRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, record: OtpRecord) -> OtpRecordDto:
        return OtpRecordDto(
            id=record.id,
            phone_number=record.phone_number,
            code=record.code,
            purpose=record.purpose,
            verified=record.verified,
            attempts=record.attempts,
            expires_at=as_utc(record.expires_at),
            created_at=as_utc(record.created_at),
        )

    def create(self, phone_number: str, code: str, purpose: str, expires_at: datetime) -> OtpRecordDto:
        record = OtpRecord(phone_number=phone_number, code=code, purpose=purpose, expires_at=as_utc(expires_at))
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_dto(record)

    def latest_unverified(self, phone_number: str) -> Optional[OtpRecordDto]:
        record = self.session.exec(
            select(OtpRecord)
            .where(OtpRecord.phone_number == phone_number, OtpRecord.verified == False)  # noqa: E712
            .order_by(OtpRecord.created_at.desc())
        ).first()
        return self._to_dto(record) if record else None

    def delete(self, record_id: str) -> None:
        self.session.exec(delete(OtpRecord).where(OtpRecord.id == record_id))
        self.session.commit()

    def delete_unverified(self, phone_number: str) -> int:
        result = self.session.exec(
            delete(OtpRecord).where(OtpRecord.phone_number == phone_number, OtpRecord.verified == False)  # noqa: E712
        )
        self.session.commit()
        return result.rowcount or 0

    def purge_expired(self, now: datetime) -> int:
        result = self.session.exec(delete(OtpRecord).where(OtpRecord.expires_at < as_utc(now)))
        self.session.commit()
        return result.rowcount or 0

    def increment_attempts(self, record_id: str) -> int:
        # single UPDATE so concurrent failures cannot overwrite each other's count
        self.session.exec(
            update(OtpRecord)
            .where(OtpRecord.id == record_id)
            .values(attempts=OtpRecord.attempts + 1)
        )
        self.session.commit()
        attempts = self.session.exec(select(OtpRecord.attempts).where(OtpRecord.id == record_id)).first()
        return attempts or 0

    def mark_verified(self, record_id: str) -> None:
        self.session.exec(update(OtpRecord).where(OtpRecord.id == record_id).values(verified=True))
        self.session.commit()
