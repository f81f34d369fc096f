import logging
import uuid

from fastapi import APIRouter, Depends, Request

from ..application.ports.audit_logger import AuditLogger
from ..application.services import OtpService
from ..dependencies import get_audit_logger, get_otp_service
from ..exceptions import RelayError, create_success_response
from ..schemas import CheckPhoneRequest, ResendOtpRequest, SendOtpRequest, VerifyOtpRequest
from ..utils import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["Authentication"])


def _request_id(request: Request) -> str:
    # set by LoggingMiddleware; absent when the router is mounted without it
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _audit_failure(audit: AuditLogger, action: str, phone: str, request_id: str, ip: str, exc: RelayError) -> None:
    audit.log(action, phone, request_id=request_id, ip_address=ip, success=False,
              details={"error": exc.error_code, "message": exc.message})


@router.post("/send-otp")
def send_otp(payload: SendOtpRequest, request: Request,
             service: OtpService = Depends(get_otp_service),
             audit: AuditLogger = Depends(get_audit_logger)):
    request_id = _request_id(request)
    ip = get_client_ip(request)
    try:
        result = service.issue(payload.phoneNumber, payload.purpose)
    except RelayError as e:
        _audit_failure(audit, "send_otp", payload.phoneNumber, request_id, ip, e)
        raise
    audit.log("send_otp", result.phone_number, user_id=result.user.user_id if result.user else None,
              request_id=request_id, ip_address=ip, details={"purpose": result.purpose.value})
    return create_success_response("OTP sent successfully", data=result.to_dict())


@router.post("/resend-otp")
def resend_otp(payload: ResendOtpRequest, request: Request,
               service: OtpService = Depends(get_otp_service),
               audit: AuditLogger = Depends(get_audit_logger)):
    request_id = _request_id(request)
    ip = get_client_ip(request)
    try:
        result = service.resend(payload.phoneNumber, payload.purpose)
    except RelayError as e:
        _audit_failure(audit, "resend_otp", payload.phoneNumber, request_id, ip, e)
        raise
    audit.log("resend_otp", result.phone_number, request_id=request_id, ip_address=ip,
              details={"purpose": result.purpose.value})
    return create_success_response("OTP resent successfully", data=result.to_dict())


@router.post("/verify-otp")
def verify_otp(payload: VerifyOtpRequest, request: Request,
               service: OtpService = Depends(get_otp_service),
               audit: AuditLogger = Depends(get_audit_logger)):
    request_id = _request_id(request)
    ip = get_client_ip(request)
    try:
        verification = service.verify(payload.phoneNumber, payload.otp)
    except RelayError as e:
        _audit_failure(audit, "verify_otp", payload.phoneNumber, request_id, ip, e)
        raise
    audit.log("verify_otp", verification.phone_number,
              user_id=verification.user.user_id if verification.user else None,
              request_id=request_id, ip_address=ip)
    return create_success_response("OTP verified successfully", data=verification.to_dict())


@router.post("/check-phone")
def check_phone(payload: CheckPhoneRequest, service: OtpService = Depends(get_otp_service)):
    lookup = service.check_phone(payload.phoneNumber)
    message = "User found" if lookup.exists else "No user registered with this phone number"
    return create_success_response(message, data=lookup.to_dict())
