# webhook_relay/schemas/otp.py
import re
from pydantic import BaseModel, Field, field_validator

from ..application.services.otp_service import OtpPurpose


def _clean_phone(v: str) -> str:
    phone_clean = re.sub(r'[^\d+]', '', v or '')
    if len(re.sub(r'\D', '', phone_clean)) < 10:
        raise ValueError('Phone number must contain at least 10 digits')
    return phone_clean


class SendOtpRequest(BaseModel):
    phoneNumber: str = Field(..., description="Phone number, local or with country code")
    purpose: OtpPurpose = Field(OtpPurpose.LOGIN, description="What the code will be used for")

    @field_validator('phoneNumber')
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)


class ResendOtpRequest(SendOtpRequest):
    pass


class VerifyOtpRequest(BaseModel):
    phoneNumber: str
    otp: str = Field(..., min_length=1, max_length=12)

    @field_validator('phoneNumber')
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)

    @field_validator('otp')
    @classmethod
    def validate_otp(cls, v):
        v = v.strip()
        if not v.isdigit():
            raise ValueError('OTP must contain digits only')
        return v


class CheckPhoneRequest(BaseModel):
    phoneNumber: str

    @field_validator('phoneNumber')
    @classmethod
    def validate_phone(cls, v):
        return _clean_phone(v)
