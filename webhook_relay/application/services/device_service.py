# webhook_relay/application/services/device_service.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..ports.device_repo import DeviceDto, DeviceRepository
from ..ports.directory import DirectoryClient
from ...exceptions import DeviceNotFound, LookupFailure
from ...utils import DEFAULT_COUNTRY_CODE, mask_phone, normalize_phone

logger = logging.getLogger(__name__)


@dataclass
class DeviceRegistration:
    token: str
    phone_number: Optional[str] = None
    user_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    registration_number: Optional[str] = None
    chassis_number: Optional[str] = None
    platform: Optional[str] = None
    device_info: Optional[Dict[str, Any]] = None


@dataclass
class DeviceService:
    device_repo: DeviceRepository
    directory: Optional[DirectoryClient] = None
    country_code: str = DEFAULT_COUNTRY_CODE

    def register(self, registration: DeviceRegistration) -> DeviceDto:
        """Upsert a push token and mark it active"""
        fields: Dict[str, Any] = {
            "user_id": registration.user_id,
            "vehicle_id": registration.vehicle_id,
            "registration_number": registration.registration_number,
            "chassis_number": registration.chassis_number,
            "platform": registration.platform,
            "device_info": registration.device_info,
        }
        if registration.phone_number:
            phone = normalize_phone(registration.phone_number, self.country_code)
            fields["phone_number"] = phone
            if not registration.vehicle_id and self.directory is not None:
                for key, value in self._vehicle_fields(phone).items():
                    if fields.get(key) is None:
                        fields[key] = value

        device = self.device_repo.upsert(
            registration.token,
            {key: value for key, value in fields.items() if value is not None},
        )
        logger.info(f"Device registered (id={device.id}, vehicle={device.vehicle_id})")
        return device

    def unregister(self, token: str) -> None:
        if not self.device_repo.deactivate(token):
            raise DeviceNotFound()
        logger.info("Device unregistered")

    def list(self, vehicle_id: Optional[str] = None, active: Optional[bool] = None, limit: int = 100) -> List[DeviceDto]:
        return self.device_repo.list(vehicle_id=vehicle_id, active=active, limit=limit)

    def _vehicle_fields(self, phone: str) -> Dict[str, Any]:
        try:
            lookup = self.directory.check_user_exists(phone)
        except LookupFailure as e:
            logger.warning(f"Directory lookup failed while registering {mask_phone(phone)}: {e.message}")
            return {}
        if not lookup.exists or lookup.user is None:
            return {}
        user = lookup.user
        return {
            "user_id": user.user_id,
            "vehicle_id": user.vehicle_id,
            "registration_number": user.registration_number,
            "chassis_number": user.chassis_number,
        }
