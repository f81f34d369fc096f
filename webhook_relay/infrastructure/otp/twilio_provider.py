import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...application.ports.sms_sender import SmsDeliveryError, SmsSender
from ...utils import mask_phone

logger = logging.getLogger(__name__)


class TwilioSmsSender(SmsSender):
    """Delivers locally generated OTP codes through Twilio Programmable Messaging."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str, template: str,
                 timeout: int = 15, max_retries: int = 3, client: Optional[Client] = None):
        self.client = client or Client(
            account_sid,
            auth_token,
            http_client=TwilioHttpClient(timeout=timeout, max_retries=max_retries),
        )
        self.from_number = from_number
        self.template = template

    def send_code(self, phone: str, code: str, expiry_minutes: int) -> str:
        if not self.from_number:
            raise SmsDeliveryError("Twilio sender number not configured")
        body = self.template.format(code=code, minutes=expiry_minutes)
        try:
            message = self.client.messages.create(to=phone, from_=self.from_number, body=body)
        except TwilioException as e:
            raise SmsDeliveryError(str(e)) from e
        logger.info(f"Twilio SMS queued for {mask_phone(phone)}, SID: {message.sid}")
        return message.sid
