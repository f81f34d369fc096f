# Services package (re-export feature modules for stable imports)
from .otp_service import OtpService, OtpPurpose
from .notification_service import NotificationService, DeviceQuery, DispatchResult
from .telemetry_service import TelemetryService, TelemetryEvent
from .webhook_service import WebhookService
from .device_service import DeviceService, DeviceRegistration

__all__ = [
    "OtpService",
    "OtpPurpose",
    "NotificationService",
    "DeviceQuery",
    "DispatchResult",
    "TelemetryService",
    "TelemetryEvent",
    "WebhookService",
    "DeviceService",
    "DeviceRegistration",
]
