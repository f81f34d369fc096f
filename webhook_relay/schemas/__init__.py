# Schemas package
from .otp import SendOtpRequest, ResendOtpRequest, VerifyOtpRequest, CheckPhoneRequest
from .devices import RegisterDeviceRequest, UnregisterDeviceRequest
from .telemetry import TelemetryRequest
from .notifications import SendNotificationRequest

__all__ = [
    "SendOtpRequest",
    "ResendOtpRequest",
    "VerifyOtpRequest",
    "CheckPhoneRequest",
    "RegisterDeviceRequest",
    "UnregisterDeviceRequest",
    "TelemetryRequest",
    "SendNotificationRequest",
]
