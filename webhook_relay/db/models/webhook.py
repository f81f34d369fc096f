# webhook_relay/db/models/webhook.py
from typing import Any, Dict, Optional
from sqlmodel import SQLModel, Field, Column, JSON
from datetime import datetime
import uuid
from sqlalchemy import DateTime

from ...utils import utcnow

class WebhookRecord(SQLModel, table=True):
    __tablename__ = "webhook_records"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    # opaque pass-through body, may be an object, a list or a scalar
    payload: Any = Field(default=None, sa_column=Column(JSON))
    headers: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    method: str = Field(max_length=10)
    source_ip: Optional[str] = Field(default=None, max_length=45)
    url: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    notification_sent: bool = Field(default=False)
    notification_error: Optional[str] = None
