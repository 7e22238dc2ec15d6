from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, field_validator, model_validator

from portal.models.otp import OtpChannel


def _normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = "".join(ch for ch in value.strip() if ch.isdigit() or ch == "+")
    return cleaned or None


class UserCreate(BaseModel):
    """Validated shape of a user record before it reaches the credential store."""

    email: EmailStr | None = None
    phone: str | None = None
    password_hash: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str | None) -> str | None:
        return value.lower() if value else None

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, value: str | None) -> str | None:
        return _normalize_phone(value)


class LoginRequest(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    password: str

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, value: str | None) -> str | None:
        return _normalize_phone(value)

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.email and not self.phone:
            raise ValueError("Valid email or phone is required")
        return self

    @property
    def channel(self) -> OtpChannel:
        return OtpChannel.email if self.email else OtpChannel.phone


class VerifyOtp(BaseModel):
    temp_user_id: int
    code: str
    channel: OtpChannel = OtpChannel.email

    @field_validator("code")
    @classmethod
    def strip_code(cls, value: str) -> str:
        return value.strip()


class ResendOtp(BaseModel):
    temp_user_id: int
    channel: OtpChannel = OtpChannel.email


class UserResponse(BaseModel):
    id: int
    email: EmailStr | None
    phone: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleResolution(BaseModel):
    role: Literal["investor", "admin", "super_admin"] | None = None
    investor_id: int | None = None
    admin_id: int | None = None
    is_super_admin: bool = False
