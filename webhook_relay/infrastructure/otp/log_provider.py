import logging
import uuid

from ...application.ports.sms_sender import SmsSender
from ...utils import mask_phone

logger = logging.getLogger(__name__)


class LogSmsSender(SmsSender):
    """Development sender: records the send in the log instead of texting anyone."""

    def send_code(self, phone: str, code: str, expiry_minutes: int) -> str:
        message_id = f"log-{uuid.uuid4()}"
        logger.info(f"OTP for {mask_phone(phone)} not sent (log provider), valid {expiry_minutes} min, id={message_id}")
        return message_id
