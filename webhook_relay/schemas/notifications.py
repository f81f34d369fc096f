# webhook_relay/schemas/notifications.py
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class SendNotificationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=1000)
    data: Optional[Dict[str, Any]] = None
    vehicleId: Optional[str] = Field(None, description="Only notify devices linked to this vehicle")
