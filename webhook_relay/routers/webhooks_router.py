import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from starlette.concurrency import run_in_threadpool

from ..application.ports.webhook_repo import WebhookDto
from ..application.services import WebhookService
from ..container import Container
from ..dependencies import get_container, get_webhook_service
from ..exceptions import ValidationError, create_success_response
from ..utils import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Webhooks"])

SAVED_TO = "database"


async def read_payload(request: Request) -> Any:
    """JSON or url-encoded form body; anything else is kept as text."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        if content_type.endswith("json"):
            raise ValidationError("Request body is not valid JSON")
        return {"raw": raw.decode("utf-8", errors="replace")}


def _received(record: WebhookDto, message: str) -> dict:
    return create_success_response(
        message,
        id=record.id,
        timestamp=record.timestamp.isoformat(),
        receivedData=record.payload,
        savedTo=SAVED_TO,
        notificationSent=record.notification_sent,
    )


@router.post("/webhook")
async def receive_webhook(request: Request, service: WebhookService = Depends(get_webhook_service)):
    payload = await read_payload(request)
    record = await run_in_threadpool(
        service.ingest,
        payload,
        dict(request.headers),
        request.method,
        get_client_ip(request),
        str(request.url),
    )
    return _received(record, "Webhook received successfully")


@router.get("/webhook")
async def receive_webhook_query(request: Request, service: WebhookService = Depends(get_webhook_service)):
    record = await run_in_threadpool(
        service.ingest,
        dict(request.query_params),
        dict(request.headers),
        request.method,
        get_client_ip(request),
        str(request.url),
    )
    return _received(record, "Webhook GET request received")


@router.get("/webhooks")
def list_webhooks(
    limit: int = Query(10, ge=1),
    service: WebhookService = Depends(get_webhook_service),
    container: Container = Depends(get_container),
):
    records = service.list(limit=min(limit, container.settings.WEBHOOK_LIST_MAX_LIMIT))
    return {"success": True, "count": len(records), "data": [r.to_dict() for r in records]}


@router.get("/webhooks/{webhook_id}")
def get_webhook(webhook_id: str, service: WebhookService = Depends(get_webhook_service)):
    return {"success": True, "data": service.get(webhook_id).to_dict()}


@router.delete("/webhooks")
def delete_webhooks(service: WebhookService = Depends(get_webhook_service)):
    deleted = service.delete_all()
    return create_success_response(f"Deleted {deleted} webhooks", deleted=deleted)


@router.get("/webhook-status")
def webhook_status(service: WebhookService = Depends(get_webhook_service)):
    return create_success_response("Webhook server is running", data=service.status())
