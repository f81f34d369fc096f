from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, func
from sqlmodel import Session, select

from .....db.models import WebhookRecord
from .....utils import as_utc
from .....application.ports.webhook_repo import WebhookRepository, WebhookDto

class SqlWebhookRepository(WebhookRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, record: WebhookRecord) -> WebhookDto:
        return WebhookDto(
            id=record.id,
            payload=record.payload,
            headers=record.headers,
            method=record.method,
            source_ip=record.source_ip,
            url=record.url,
            timestamp=as_utc(record.timestamp),
            notification_sent=record.notification_sent,
            notification_error=record.notification_error,
        )

    def create(self, payload: Any, headers: Dict[str, Any], method: str, source_ip: Optional[str], url: Optional[str]) -> WebhookDto:
        record = WebhookRecord(payload=payload, headers=headers, method=method, source_ip=source_ip, url=url)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_dto(record)

    def record_outcome(self, webhook_id: str, notification_sent: bool, notification_error: Optional[str]) -> WebhookDto:
        record = self.session.get(WebhookRecord, webhook_id)
        if record is None:
            raise LookupError(f"Webhook {webhook_id} not found")
        record.notification_sent = notification_sent
        record.notification_error = notification_error
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return self._to_dto(record)

    def get(self, webhook_id: str) -> Optional[WebhookDto]:
        record = self.session.get(WebhookRecord, webhook_id)
        return self._to_dto(record) if record else None

    def list_recent(self, limit: int = 10) -> List[WebhookDto]:
        records = self.session.exec(
            select(WebhookRecord).order_by(WebhookRecord.timestamp.desc()).limit(limit)
        ).all()
        return [self._to_dto(r) for r in records]

    def delete_all(self) -> int:
        result = self.session.exec(delete(WebhookRecord))
        self.session.commit()
        return result.rowcount or 0

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(WebhookRecord)).one()

    def count_notified(self) -> int:
        return self.session.exec(
            select(func.count()).select_from(WebhookRecord).where(WebhookRecord.notification_sent == True)  # noqa: E712
        ).one()

    def latest_timestamp(self) -> Optional[datetime]:
        return as_utc(self.session.exec(select(func.max(WebhookRecord.timestamp))).one())
