import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors that map onto a JSON error envelope."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(RelayError):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class PayloadTooLarge(RelayError):
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"
    default_message = "Request entity too large"


class UserNotFound(RelayError):
    status_code = 404
    error_code = "USER_NOT_FOUND"
    default_message = "No user registered with this phone number"


class OtpNotFound(RelayError):
    status_code = 404
    error_code = "OTP_NOT_FOUND"
    default_message = "No pending OTP for this phone number. Please request a new one."


class OtpExpired(RelayError):
    status_code = 400
    error_code = "OTP_EXPIRED"
    default_message = "OTP has expired. Please request a new one."


class InvalidOtp(RelayError):
    status_code = 400
    error_code = "INVALID_OTP"
    default_message = "Invalid OTP"


class MaxAttemptsExceeded(RelayError):
    status_code = 429
    error_code = "MAX_ATTEMPTS_EXCEEDED"
    default_message = "Maximum verification attempts exceeded. Please request a new OTP."


class LookupFailure(RelayError):
    status_code = 502
    error_code = "DIRECTORY_LOOKUP_FAILED"
    default_message = "Directory lookup failed"


class UpstreamGatewayFailure(RelayError):
    status_code = 500
    error_code = "UPSTREAM_GATEWAY_FAILURE"
    default_message = "Upstream gateway failure"


class StoreUnavailable(RelayError):
    status_code = 503
    error_code = "STORE_UNAVAILABLE"
    default_message = "Database unavailable"


class NotFoundError(RelayError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"


class WebhookNotFound(NotFoundError):
    error_code = "WEBHOOK_NOT_FOUND"
    default_message = "Webhook not found"


class DeviceNotFound(NotFoundError):
    error_code = "DEVICE_NOT_FOUND"
    default_message = "Device not found"


def create_error_response(message: str, error: str, **extra: Any) -> Dict[str, Any]:
    """Create a standardized error response"""
    return {
        "success": False,
        "message": message,
        "error": error,
        **extra,
    }


def create_success_response(message: str, data: Any = None, **extra: Any) -> Dict[str, Any]:
    """Create a standardized success response"""
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


async def relay_exception_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.error_code, **exc.context),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed fields are reported as 400 VALIDATION_ERROR"""
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append({"field": location, "message": err.get("msg")})
    message = "Invalid request"
    if details and details[0]["field"]:
        message = f"Invalid or missing field: {details[0]['field']}"
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=create_error_response(message, ValidationError.error_code, details=details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def store_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=StoreUnavailable.status_code,
        content=create_error_response(StoreUnavailable.default_message, StoreUnavailable.error_code),
    )
