from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class WebhookDto:
    id: str
    payload: Any
    headers: Optional[Dict[str, Any]]
    method: str
    source_ip: Optional[str]
    url: Optional[str]
    timestamp: datetime
    notification_sent: bool
    notification_error: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "payload": self.payload,
            "headers": self.headers,
            "method": self.method,
            "sourceIp": self.source_ip,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
            "notificationSent": self.notification_sent,
            "notificationError": self.notification_error,
        }


class WebhookRepository:
    def create(self, payload: Any, headers: Dict[str, Any], method: str, source_ip: Optional[str], url: Optional[str]) -> WebhookDto:
        ...

    def record_outcome(self, webhook_id: str, notification_sent: bool, notification_error: Optional[str]) -> WebhookDto:
        ...

    def get(self, webhook_id: str) -> Optional[WebhookDto]:
        ...

    def list_recent(self, limit: int = 10) -> List[WebhookDto]:
        ...

    def delete_all(self) -> int:
        ...

    def count(self) -> int:
        ...

    def count_notified(self) -> int:
        ...

    def latest_timestamp(self) -> Optional[datetime]:
        ...


