from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class DeviceDto:
    id: int
    token: str
    phone_number: Optional[str]
    user_id: Optional[str]
    vehicle_id: Optional[str]
    registration_number: Optional[str]
    chassis_number: Optional[str]
    platform: Optional[str]
    device_info: Optional[Dict[str, Any]]
    active: bool
    last_used: datetime
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "token": self.token,
            "phoneNumber": self.phone_number,
            "userId": self.user_id,
            "vehicleId": self.vehicle_id,
            "registrationNumber": self.registration_number,
            "chassisNumber": self.chassis_number,
            "platform": self.platform,
            "deviceInfo": self.device_info,
            "active": self.active,
            "lastUsed": self.last_used.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }


class DeviceRepository:
    def upsert(self, token: str, fields: Dict[str, Any]) -> DeviceDto:
        ...

    def get_by_token(self, token: str) -> Optional[DeviceDto]:
        ...

    def deactivate(self, token: str) -> bool:
        ...

    def deactivate_many(self, tokens: Iterable[str]) -> int:
        ...

    def list_active(self, vehicle_id: Optional[str] = None) -> List[DeviceDto]:
        ...

    def list(self, vehicle_id: Optional[str] = None, active: Optional[bool] = None, limit: int = 100) -> List[DeviceDto]:
        ...

    def count_active(self) -> int:
        ...


