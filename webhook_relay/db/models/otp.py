# webhook_relay/db/models/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid
from sqlalchemy import DateTime

from ...utils import utcnow

class OtpRecord(SQLModel, table=True):
    __tablename__ = "otp_records"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    phone_number: str = Field(max_length=20, index=True)
    code: str = Field(max_length=10)
    purpose: str = Field(max_length=20, default="login")
    verified: bool = Field(default=False)
    attempts: int = Field(default=0)
    expires_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
