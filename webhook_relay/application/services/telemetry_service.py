import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .notification_service import DeviceQuery, DispatchResult, NotificationService
from ..ports.telemetry_repo import TelemetryLogDto, TelemetryRepository
from ..templates import TelemetryEventType, template_for
from ...exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class TelemetryEvent:
    device_id: str
    event: str
    timestamp: Optional[datetime] = None
    raw_payload: Optional[Dict[str, Any]] = None


@dataclass
class TelemetryOutcome:
    log: TelemetryLogDto
    event_type: TelemetryEventType
    notification: DispatchResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "logId": self.log.id,
            "deviceId": self.log.device_id,
            "event": self.log.event,
            "eventType": self.event_type.value,
            "notificationSent": self.log.notification_sent,
            "devicesNotified": self.log.devices_notified,
            "notification": self.notification.to_dict(),
        }


@dataclass
class TelemetryService:
    telemetry_repo: TelemetryRepository
    notifications: NotificationService
    android_channel_id: Optional[str] = None

    def route(self, event: TelemetryEvent) -> TelemetryOutcome:
        if not event.device_id:
            raise ValidationError("deviceId is required")
        if not event.event:
            raise ValidationError("event is required")

        # audit row first, the notification outcome is filled in afterwards
        log = self.telemetry_repo.create(event.device_id, event.event, event.timestamp, event.raw_payload)

        event_type = TelemetryEventType.parse(event.event)
        message = template_for(event.event).render(
            vehicle=event.device_id,
            event=event.event,
            channel_id=self.android_channel_id,
        )
        result = self.notifications.send_push(DeviceQuery(vehicle_id=event.device_id), message)

        log = self.telemetry_repo.record_outcome(
            log.id,
            notification_sent=result.success,
            devices_notified=result.success_count,
            notification_error=result.failure_message,
        )
        logger.info(
            f"Telemetry {event_type.value} from {event.device_id}: "
            f"notified {result.success_count}/{result.total_devices} device(s)"
        )
        return TelemetryOutcome(log=log, event_type=event_type, notification=result)

    def recent(self, device_id: Optional[str] = None, limit: int = 20) -> List[TelemetryLogDto]:
        return self.telemetry_repo.list_recent(device_id=device_id, limit=limit)
