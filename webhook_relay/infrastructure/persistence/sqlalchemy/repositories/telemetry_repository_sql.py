from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select

from .....db.models import TelemetryLog
from .....utils import as_utc, utcnow
from .....application.ports.telemetry_repo import TelemetryRepository, TelemetryLogDto

class SqlTelemetryRepository(TelemetryRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, log: TelemetryLog) -> TelemetryLogDto:
        return TelemetryLogDto(
            id=log.id,
            device_id=log.device_id,
            event=log.event,
            timestamp=as_utc(log.timestamp),
            raw_payload=log.raw_payload,
            notification_sent=log.notification_sent,
            devices_notified=log.devices_notified,
            notification_error=log.notification_error,
            received_at=as_utc(log.received_at),
            processed_at=as_utc(log.processed_at),
        )

    def create(self, device_id: str, event: str, timestamp: Optional[datetime], raw_payload: Optional[Dict[str, Any]]) -> TelemetryLogDto:
        log = TelemetryLog(device_id=device_id, event=event, timestamp=as_utc(timestamp), raw_payload=raw_payload)
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)
        return self._to_dto(log)

    def record_outcome(self, log_id: int, notification_sent: bool, devices_notified: int, notification_error: Optional[str]) -> TelemetryLogDto:
        log = self.session.get(TelemetryLog, log_id)
        if log is None:
            raise LookupError(f"Telemetry log {log_id} not found")
        log.notification_sent = notification_sent
        log.devices_notified = devices_notified
        log.notification_error = notification_error
        log.processed_at = utcnow()
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)
        return self._to_dto(log)

    def list_recent(self, device_id: Optional[str] = None, limit: int = 20) -> List[TelemetryLogDto]:
        query = select(TelemetryLog)
        if device_id is not None:
            query = query.where(TelemetryLog.device_id == device_id)
        query = query.order_by(TelemetryLog.received_at.desc(), TelemetryLog.id.desc()).limit(limit)
        return [self._to_dto(log) for log in self.session.exec(query).all()]
