# webhook_relay/schemas/devices.py
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class RegisterDeviceRequest(BaseModel):
    token: str = Field(..., min_length=1, description="FCM registration token")
    phoneNumber: Optional[str] = None
    userId: Optional[str] = None
    vehicleId: Optional[str] = None
    registrationNumber: Optional[str] = None
    chassisNumber: Optional[str] = None
    platform: Optional[str] = Field(None, description="android or ios")
    deviceInfo: Optional[Dict[str, Any]] = None


class UnregisterDeviceRequest(BaseModel):
    token: str = Field(..., min_length=1)
