# webhook_relay/db/models/device.py
from typing import Any, Dict, Optional
from sqlmodel import SQLModel, Field, Column, JSON
from datetime import datetime
from sqlalchemy import DateTime

from ...utils import utcnow

class DeviceToken(SQLModel, table=True):
    __tablename__ = "device_tokens"
    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(max_length=512, unique=True, index=True)
    phone_number: Optional[str] = Field(default=None, max_length=20, index=True)
    user_id: Optional[str] = None
    vehicle_id: Optional[str] = Field(default=None, index=True)
    registration_number: Optional[str] = None
    chassis_number: Optional[str] = None
    platform: Optional[str] = Field(default=None, max_length=10)
    device_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    active: bool = Field(default=True, index=True)
    last_used: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
