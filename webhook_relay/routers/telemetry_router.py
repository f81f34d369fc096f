import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..application.services import TelemetryEvent, TelemetryService
from ..dependencies import get_telemetry_service
from ..exceptions import create_success_response
from ..schemas import TelemetryRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Telemetry"])


@router.post("/telemetry")
def receive_telemetry(payload: TelemetryRequest, service: TelemetryService = Depends(get_telemetry_service)):
    outcome = service.route(TelemetryEvent(
        device_id=payload.deviceId,
        event=payload.event,
        timestamp=payload.timestamp,
        raw_payload=payload.model_dump(mode="json"),
    ))
    return create_success_response("Telemetry processed", data=outcome.to_dict())


@router.get("/telemetry")
def recent_telemetry(
    deviceId: Optional[str] = None,
    limit: int = Query(20, ge=1, le=200),
    service: TelemetryService = Depends(get_telemetry_service),
):
    logs = service.recent(device_id=deviceId, limit=limit)
    return create_success_response(
        f"Found {len(logs)} telemetry log(s)",
        data=[log.to_dict() for log in logs],
        count=len(logs),
    )
