# webhook_relay/schemas/telemetry.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TelemetryRequest(BaseModel):
    """Device event; keys beyond the known ones are kept in the stored payload."""

    model_config = ConfigDict(extra="allow")

    deviceId: str = Field(..., min_length=1)
    event: str = Field(..., min_length=1)
    timestamp: Optional[datetime] = None
