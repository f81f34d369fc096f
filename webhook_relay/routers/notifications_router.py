import logging

from fastapi import APIRouter, Depends

from ..application.ports.push_gateway import PushMessage
from ..application.services import DeviceQuery, NotificationService
from ..dependencies import get_container, get_notification_service
from ..container import Container
from ..schemas import SendNotificationRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Notifications"])


@router.post("/send-notification")
def send_notification(
    payload: SendNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
    container: Container = Depends(get_container),
):
    data = {"type": "manual"}
    data.update({str(k): str(v) for k, v in (payload.data or {}).items()})
    message = PushMessage(
        title=payload.title,
        body=payload.body,
        data=data,
        android_channel_id=container.settings.PUSH_ANDROID_CHANNEL_ID,
    )
    result = service.send_push(DeviceQuery(vehicle_id=payload.vehicleId), message)
    if result.success:
        text = f"Notification sent to {result.success_count} device(s)"
    else:
        text = f"Notification not delivered: {result.failure_message}"
    # dispatch outcome is the envelope itself, success mirrors delivery
    return {"message": text, **result.to_dict()}
