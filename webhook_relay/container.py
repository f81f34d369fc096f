import logging
from dataclasses import dataclass
from typing import Any

from .application.ports.audit_logger import AuditLogger
from .application.ports.directory import DirectoryClient
from .application.ports.push_gateway import PushGateway
from .application.ports.sms_sender import SmsSender
from .core.config import Settings
from .db.session import Database
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.directory.http_directory import HttpDirectoryClient
from .infrastructure.otp.log_provider import LogSmsSender
from .infrastructure.otp.twilio_provider import TwilioSmsSender
from .infrastructure.push.fcm_gateway import FcmPushGateway

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Process-wide collaborators shared by every request."""

    settings: Settings
    database: Database
    directory: DirectoryClient
    sms_sender: SmsSender
    push_gateway: PushGateway
    audit: AuditLogger

    def close(self) -> None:
        self.database.dispose()
        for adapter in (self.directory, self.sms_sender, self.push_gateway):
            close = getattr(adapter, "close", None)
            if callable(close):
                close()


def build_sms_sender(settings: Settings) -> SmsSender:
    if settings.SMS_PROVIDER.lower() == "twilio":
        logger.info("Using Twilio SMS provider")
        return TwilioSmsSender(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_PHONE_NUMBER,
            template=settings.SMS_MESSAGE_TEMPLATE,
            timeout=settings.TWILIO_TIMEOUT_SECONDS,
            max_retries=settings.TWILIO_MAX_RETRIES,
        )
    logger.warning("Using log SMS provider, OTP codes are not delivered")
    return LogSmsSender()


def build_container(settings: Settings, **overrides: Any) -> Container:
    """Wire the concrete adapters; keyword overrides replace any of them."""
    parts = {
        "database": lambda: Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO),
        "directory": lambda: HttpDirectoryClient(
            settings.DIRECTORY_API_URL,
            api_key=settings.DIRECTORY_API_KEY,
            phone_field=settings.DIRECTORY_PHONE_FIELD,
            timeout=settings.DIRECTORY_TIMEOUT_SECONDS,
            country_code=settings.DEFAULT_COUNTRY_CODE,
        ),
        "sms_sender": lambda: build_sms_sender(settings),
        "push_gateway": lambda: FcmPushGateway(
            project_id=settings.FIREBASE_PROJECT_ID,
            client_email=settings.FIREBASE_CLIENT_EMAIL,
            private_key=settings.FIREBASE_PRIVATE_KEY,
            app_name=settings.FIREBASE_APP_NAME,
        ),
        "audit": lambda: StdAuditLogger(),
    }
    unknown = set(overrides) - set(parts)
    if unknown:
        raise TypeError(f"Unknown container parts: {', '.join(sorted(unknown))}")
    built = {name: overrides[name] if name in overrides else factory() for name, factory in parts.items()}
    return Container(settings=settings, **built)
