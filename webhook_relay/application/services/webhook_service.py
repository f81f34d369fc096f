import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .notification_service import DeviceQuery, DispatchResult, NotificationService
from ..ports.device_repo import DeviceRepository
from ..ports.webhook_repo import WebhookDto, WebhookRepository
from ..templates import WEBHOOK_TEMPLATE
from ...exceptions import WebhookNotFound

logger = logging.getLogger(__name__)


def describe_payload(payload: Any) -> str:
    """Short human readable line for the push body."""
    if isinstance(payload, dict):
        for key in ("message", "event", "type"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return "Webhook received"


@dataclass
class WebhookService:
    webhook_repo: WebhookRepository
    device_repo: DeviceRepository
    notifications: NotificationService
    notify_devices: bool = True
    android_channel_id: Optional[str] = None

    def ingest(self, payload: Any, headers: Dict[str, Any], method: str,
               source_ip: Optional[str], url: Optional[str]) -> WebhookDto:
        record = self.webhook_repo.create(payload, headers, method, source_ip, url)
        logger.info(f"Webhook received and saved: {record.id} ({method})")

        if not self.notify_devices:
            return record

        event = describe_payload(payload)
        message = WEBHOOK_TEMPLATE.render(
            event=event,
            channel_id=self.android_channel_id,
            extra_data={"webhookId": record.id},
            kind="webhook",
        )
        result: DispatchResult = self.notifications.send_push(DeviceQuery(), message)
        return self.webhook_repo.record_outcome(
            record.id,
            notification_sent=result.success,
            notification_error=result.failure_message,
        )

    def list(self, limit: int = 10) -> List[WebhookDto]:
        return self.webhook_repo.list_recent(limit=limit)

    def get(self, webhook_id: str) -> WebhookDto:
        record = self.webhook_repo.get(webhook_id)
        if record is None:
            raise WebhookNotFound(id=webhook_id)
        return record

    def delete_all(self) -> int:
        deleted = self.webhook_repo.delete_all()
        logger.info(f"Deleted {deleted} webhooks")
        return deleted

    def status(self) -> Dict[str, Any]:
        latest = self.webhook_repo.latest_timestamp()
        return {
            "totalWebhooks": self.webhook_repo.count(),
            "notificationsSent": self.webhook_repo.count_notified(),
            "lastReceivedAt": latest.isoformat() if latest else None,
            "activeDevices": self.device_repo.count_active(),
            "notificationsEnabled": self.notify_devices,
        }
