from typing import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from .application.ports.audit_logger import AuditLogger
from .application.services import (
    DeviceService,
    NotificationService,
    OtpService,
    TelemetryService,
    WebhookService,
)
from .container import Container
from .db.session import Database
from .infrastructure.persistence.sqlalchemy.repositories.device_repository_sql import SqlDeviceRepository
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.telemetry_repository_sql import SqlTelemetryRepository
from .infrastructure.persistence.sqlalchemy.repositories.webhook_repository_sql import SqlWebhookRepository


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_database(container: Container = Depends(get_container)) -> Database:
    # first caller creates the engine, concurrent callers share that attempt
    await container.database.connect()
    return container.database


def get_session(database: Database = Depends(get_database)) -> Iterator[Session]:
    with Session(database.engine) as session:
        yield session


def get_audit_logger(container: Container = Depends(get_container)) -> AuditLogger:
    return container.audit


def get_otp_service(container: Container = Depends(get_container), session: Session = Depends(get_session)) -> OtpService:
    settings = container.settings
    return OtpService(
        otp_repo=SqlOtpRepository(session),
        directory=container.directory,
        sms_sender=container.sms_sender,
        code_length=settings.OTP_LENGTH,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        echo_code=settings.OTP_ECHO_IN_RESPONSE,
        session_token_bytes=settings.SESSION_TOKEN_BYTES,
        country_code=settings.DEFAULT_COUNTRY_CODE,
    )


def get_notification_service(container: Container = Depends(get_container), session: Session = Depends(get_session)) -> NotificationService:
    return NotificationService(device_repo=SqlDeviceRepository(session), push_gateway=container.push_gateway)


def get_device_service(container: Container = Depends(get_container), session: Session = Depends(get_session)) -> DeviceService:
    return DeviceService(
        device_repo=SqlDeviceRepository(session),
        directory=container.directory,
        country_code=container.settings.DEFAULT_COUNTRY_CODE,
    )


def get_telemetry_service(
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> TelemetryService:
    return TelemetryService(
        telemetry_repo=SqlTelemetryRepository(session),
        notifications=notifications,
        android_channel_id=container.settings.PUSH_ANDROID_CHANNEL_ID,
    )


def get_webhook_service(
    container: Container = Depends(get_container),
    session: Session = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> WebhookService:
    return WebhookService(
        webhook_repo=SqlWebhookRepository(session),
        device_repo=SqlDeviceRepository(session),
        notifications=notifications,
        notify_devices=container.settings.WEBHOOK_NOTIFY_DEVICES,
        android_channel_id=container.settings.PUSH_ANDROID_CHANNEL_ID,
    )
