import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.services import DeviceRegistration, DeviceService
from ..dependencies import get_device_service
from ..exceptions import create_success_response
from ..schemas import RegisterDeviceRequest, UnregisterDeviceRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Device Management"])


@router.post("/register-device")
def register_device(payload: RegisterDeviceRequest, service: DeviceService = Depends(get_device_service)):
    device = service.register(DeviceRegistration(
        token=payload.token,
        phone_number=payload.phoneNumber,
        user_id=payload.userId,
        vehicle_id=payload.vehicleId,
        registration_number=payload.registrationNumber,
        chassis_number=payload.chassisNumber,
        platform=payload.platform,
        device_info=payload.deviceInfo,
    ))
    return create_success_response("Device registered successfully", data=device.to_dict())


@router.post("/unregister-device")
def unregister_device(payload: UnregisterDeviceRequest, service: DeviceService = Depends(get_device_service)):
    service.unregister(payload.token)
    return create_success_response("Device unregistered successfully")


@router.get("/devices")
def list_devices(
    vehicleId: Optional[str] = None,
    active: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=500),
    service: DeviceService = Depends(get_device_service),
):
    devices = service.list(vehicle_id=vehicleId, active=active, limit=limit)
    return create_success_response(
        f"Found {len(devices)} device(s)",
        data=[d.to_dict() for d in devices],
        count=len(devices),
    )
