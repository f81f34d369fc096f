# webhook_relay/db/models/telemetry.py
from typing import Any, Dict, Optional
from sqlmodel import SQLModel, Field, Column, JSON
from datetime import datetime
from sqlalchemy import DateTime

from ...utils import utcnow

class TelemetryLog(SQLModel, table=True):
    __tablename__ = "telemetry_logs"
    id: Optional[int] = Field(default=None, primary_key=True)
    device_id: str = Field(index=True)
    event: str = Field(index=True)
    timestamp: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    raw_payload: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    notification_sent: bool = Field(default=False)
    devices_notified: int = Field(default=0)
    notification_error: Optional[str] = None
    received_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    processed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
