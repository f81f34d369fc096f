"""Notification templates for telemetry events and generic webhooks."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .ports.push_gateway import PushMessage


class TelemetryEventType(str, Enum):
    BATTERY_CRITICAL_LOW = "BATTERY_CRITICAL_LOW"
    BATTERY_LOW = "BATTERY_LOW"
    CHARGING_STARTED = "CHARGING_STARTED"
    CHARGING_COMPLETE = "CHARGING_COMPLETE"
    OVERSPEED = "OVERSPEED"
    HARSH_BRAKING = "HARSH_BRAKING"
    CRASH_DETECTED = "CRASH_DETECTED"
    GEOFENCE_ENTRY = "GEOFENCE_ENTRY"
    GEOFENCE_EXIT = "GEOFENCE_EXIT"
    IGNITION_ON = "IGNITION_ON"
    IGNITION_OFF = "IGNITION_OFF"
    THEFT_ALERT = "THEFT_ALERT"
    DEVICE_TAMPERED = "DEVICE_TAMPERED"
    DEFAULT = "DEFAULT"

    @classmethod
    def parse(cls, value: Optional[str]) -> "TelemetryEventType":
        """Map an inbound event string onto a known type, DEFAULT when unrecognised."""
        normalized = (value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            return cls.DEFAULT


@dataclass(frozen=True)
class NotificationTemplate:
    title: str
    body: str
    priority: str = "high"
    sound: str = "default"

    def render(self, vehicle: str = "", event: str = "", channel_id: Optional[str] = None,
               extra_data: Optional[Mapping[str, Any]] = None, kind: str = "telemetry") -> PushMessage:
        data = {"type": kind, "event": event}
        if vehicle:
            data["deviceId"] = vehicle
        for key, value in (extra_data or {}).items():
            data.setdefault(str(key), "" if value is None else str(value))
        return PushMessage(
            title=self.title,
            body=self.body.format(vehicle=vehicle, event=event),
            data=data,
            priority=self.priority,
            sound=self.sound,
            android_channel_id=channel_id,
        )


TELEMETRY_TEMPLATES: Dict[TelemetryEventType, NotificationTemplate] = {
    TelemetryEventType.BATTERY_CRITICAL_LOW: NotificationTemplate(
        title="Battery critically low",
        body="Vehicle {vehicle} battery is critically low. Charge immediately to avoid a breakdown.",
    ),
    TelemetryEventType.BATTERY_LOW: NotificationTemplate(
        title="Battery low",
        body="Vehicle {vehicle} battery is running low. Plan a charging stop soon.",
    ),
    TelemetryEventType.CHARGING_STARTED: NotificationTemplate(
        title="Charging started",
        body="Vehicle {vehicle} has started charging.",
        priority="normal",
    ),
    TelemetryEventType.CHARGING_COMPLETE: NotificationTemplate(
        title="Charging complete",
        body="Vehicle {vehicle} is fully charged.",
        priority="normal",
    ),
    TelemetryEventType.OVERSPEED: NotificationTemplate(
        title="Overspeed alert",
        body="Vehicle {vehicle} is exceeding the configured speed limit.",
    ),
    TelemetryEventType.HARSH_BRAKING: NotificationTemplate(
        title="Harsh braking detected",
        body="Vehicle {vehicle} reported a harsh braking event.",
    ),
    TelemetryEventType.CRASH_DETECTED: NotificationTemplate(
        title="Possible crash detected",
        body="Vehicle {vehicle} reported a possible collision. Check on the rider now.",
    ),
    TelemetryEventType.GEOFENCE_ENTRY: NotificationTemplate(
        title="Geofence entered",
        body="Vehicle {vehicle} entered a monitored area.",
        priority="normal",
    ),
    TelemetryEventType.GEOFENCE_EXIT: NotificationTemplate(
        title="Geofence exited",
        body="Vehicle {vehicle} left a monitored area.",
    ),
    TelemetryEventType.IGNITION_ON: NotificationTemplate(
        title="Ignition on",
        body="Vehicle {vehicle} was switched on.",
        priority="normal",
    ),
    TelemetryEventType.IGNITION_OFF: NotificationTemplate(
        title="Ignition off",
        body="Vehicle {vehicle} was switched off.",
        priority="normal",
    ),
    TelemetryEventType.THEFT_ALERT: NotificationTemplate(
        title="Theft alert",
        body="Unauthorised movement detected on vehicle {vehicle}.",
    ),
    TelemetryEventType.DEVICE_TAMPERED: NotificationTemplate(
        title="Tracker tampering",
        body="The telematics unit on vehicle {vehicle} reported tampering.",
    ),
    TelemetryEventType.DEFAULT: NotificationTemplate(
        title="Vehicle update",
        body="Vehicle {vehicle} reported event {event}.",
        priority="normal",
    ),
}

WEBHOOK_TEMPLATE = NotificationTemplate(
    title="New webhook event",
    body="{event}",
    priority="normal",
)


def template_for(event: Optional[str]) -> NotificationTemplate:
    return TELEMETRY_TEMPLATES[TelemetryEventType.parse(event)]
