from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class TelemetryLogDto:
    id: int
    device_id: str
    event: str
    timestamp: Optional[datetime]
    raw_payload: Optional[Dict[str, Any]]
    notification_sent: bool
    devices_notified: int
    notification_error: Optional[str]
    received_at: datetime
    processed_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "deviceId": self.device_id,
            "event": self.event,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "rawPayload": self.raw_payload,
            "notificationSent": self.notification_sent,
            "devicesNotified": self.devices_notified,
            "notificationError": self.notification_error,
            "receivedAt": self.received_at.isoformat(),
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
        }


class TelemetryRepository:
    def create(self, device_id: str, event: str, timestamp: Optional[datetime], raw_payload: Optional[Dict[str, Any]]) -> TelemetryLogDto:
        ...

    def record_outcome(self, log_id: int, notification_sent: bool, devices_notified: int, notification_error: Optional[str]) -> TelemetryLogDto:
        ...

    def list_recent(self, device_id: Optional[str] = None, limit: int = 20) -> List[TelemetryLogDto]:
        ...


