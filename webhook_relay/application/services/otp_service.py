import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..ports.directory import DirectoryClient, DirectoryLookup, DirectoryUser
from ..ports.otp_repo import OtpRepository
from ..ports.sms_sender import SmsDeliveryError, SmsSender
from ...exceptions import (
    InvalidOtp,
    LookupFailure,
    MaxAttemptsExceeded,
    OtpExpired,
    OtpNotFound,
    UpstreamGatewayFailure,
    UserNotFound,
)
from ...utils import DEFAULT_COUNTRY_CODE, as_utc, generate_otp, generate_session_token, mask_phone, normalize_phone, utcnow

logger = logging.getLogger(__name__)


class OtpPurpose(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"


@dataclass
class OtpIssueResult:
    phone_number: str
    purpose: OtpPurpose
    expires_at: datetime
    expires_in: int
    user: Optional[DirectoryUser] = None
    message_id: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "phoneNumber": self.phone_number,
            "purpose": self.purpose.value,
            "expiresAt": self.expires_at.isoformat(),
            "expiresIn": self.expires_in,
            "user": self.user.to_dict() if self.user else None,
        }
        if self.code is not None:
            body["otp"] = self.code
        return body


@dataclass
class OtpVerification:
    phone_number: str
    token: str
    user: Optional[DirectoryUser] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phoneNumber": self.phone_number,
            "token": self.token,
            "user": self.user.to_dict() if self.user else None,
        }


@dataclass
class OtpService:
    """Issues, resends and verifies one-time passcodes.

    Codes are generated here, stored with an expiry, and delivered through the SMS
    sender; verification compares against the stored code. A phone number has at
    most one live (unverified, unexpired) record: issuing a new code deletes the
    previous ones.
    """

    otp_repo: OtpRepository
    directory: DirectoryClient
    sms_sender: SmsSender
    code_length: int = 6
    expiry_minutes: int = 10
    max_attempts: int = 5
    echo_code: bool = False
    session_token_bytes: int = 32
    country_code: str = DEFAULT_COUNTRY_CODE
    clock: Callable[[], datetime] = field(default=utcnow)

    def check_phone(self, phone_number: str) -> DirectoryLookup:
        return self.directory.check_user_exists(normalize_phone(phone_number, self.country_code))

    def issue(self, phone_number: str, purpose: OtpPurpose = OtpPurpose.LOGIN) -> OtpIssueResult:
        phone = normalize_phone(phone_number, self.country_code)

        lookup = self.directory.check_user_exists(phone)
        if not lookup.exists:
            raise UserNotFound(phoneNumber=phone)

        code = generate_otp(self.code_length)
        now = as_utc(self.clock())
        self.otp_repo.purge_expired(now)
        superseded = self.otp_repo.delete_unverified(phone)
        if superseded:
            logger.info(f"Superseded {superseded} pending OTP(s) for {mask_phone(phone)}")

        expires_at = now + timedelta(minutes=self.expiry_minutes)
        self.otp_repo.create(phone, code, purpose.value, expires_at)

        try:
            message_id = self.sms_sender.send_code(phone, code, self.expiry_minutes)
        except SmsDeliveryError as e:
            # the stored record is kept; the caller may resend
            logger.error(f"Failed to send OTP to {mask_phone(phone)}: {e}")
            raise UpstreamGatewayFailure(f"Failed to send OTP: {e}")

        logger.info(f"OTP issued for {mask_phone(phone)} ({purpose.value})")
        return OtpIssueResult(
            phone_number=phone,
            purpose=purpose,
            expires_at=expires_at,
            expires_in=self.expiry_minutes * 60,
            user=lookup.user,
            message_id=message_id,
            code=code if self.echo_code else None,
        )

    def resend(self, phone_number: str, purpose: OtpPurpose = OtpPurpose.LOGIN) -> OtpIssueResult:
        return self.issue(phone_number, purpose)

    def verify(self, phone_number: str, submitted_code: str) -> OtpVerification:
        phone = normalize_phone(phone_number, self.country_code)

        record = self.otp_repo.latest_unverified(phone)
        if record is None:
            raise OtpNotFound(phoneNumber=phone)

        if as_utc(self.clock()) > as_utc(record.expires_at):
            self.otp_repo.delete(record.id)
            raise OtpExpired()

        if record.attempts >= self.max_attempts:
            self.otp_repo.delete(record.id)
            raise MaxAttemptsExceeded(attemptsRemaining=0)

        submitted = (submitted_code or "").strip()
        if not hmac.compare_digest(submitted.encode(), record.code.encode()):
            attempts = self.otp_repo.increment_attempts(record.id)
            remaining = max(self.max_attempts - attempts, 0)
            logger.info(f"Invalid OTP for {mask_phone(phone)}, {remaining} attempt(s) left")
            if remaining == 0:
                self.otp_repo.delete(record.id)
                raise MaxAttemptsExceeded(attemptsRemaining=0)
            raise InvalidOtp(attemptsRemaining=remaining)

        self.otp_repo.mark_verified(record.id)
        token = generate_session_token(self.session_token_bytes)
        logger.info(f"OTP verified for {mask_phone(phone)}")
        return OtpVerification(phone_number=phone, token=token, user=self._profile(phone))

    def _profile(self, phone: str) -> Optional[DirectoryUser]:
        # the code is already spent, so a directory outage must not cost the caller the token
        try:
            return self.directory.check_user_exists(phone).user
        except LookupFailure as e:
            logger.warning(f"Directory lookup failed after verifying {mask_phone(phone)}: {e.message}")
            return None
