from typing import Protocol


class SmsDeliveryError(Exception):
    """Raised by an SMS sender when the gateway rejects or fails a send."""


class SmsSender(Protocol):
    def send_code(self, phone: str, code: str, expiry_minutes: int) -> str:
        ...


