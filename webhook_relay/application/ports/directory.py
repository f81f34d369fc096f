from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol


@dataclass
class DirectoryUser:
    user_id: Optional[str]
    name: Optional[str]
    phone_number: str
    vehicle_id: Optional[str] = None
    registration_number: Optional[str] = None
    chassis_number: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "vehicleId": self.vehicle_id,
            "registrationNumber": self.registration_number,
            "chassisNumber": self.chassis_number,
            "model": self.model,
        }


@dataclass
class DirectoryLookup:
    exists: bool
    user: Optional[DirectoryUser] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"exists": self.exists}
        if self.user is not None:
            body["user"] = self.user.to_dict()
        return body


class DirectoryClient(Protocol):
    def check_user_exists(self, phone_number: str) -> DirectoryLookup:
        ...


