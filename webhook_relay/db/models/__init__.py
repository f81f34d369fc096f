# Models package (re-export feature modules for stable imports)
from .otp import OtpRecord
from .device import DeviceToken
from .telemetry import TelemetryLog
from .webhook import WebhookRecord

__all__ = [
    "OtpRecord",
    "DeviceToken",
    "TelemetryLog",
    "WebhookRecord",
]
