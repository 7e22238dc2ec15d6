import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from portal.config import settings
from portal.database import get_db
from portal.errors import NotFound, Unauthorized, ValidationError
from portal.models.otp import OtpChannel
from portal.models.user import User
from portal.schemas.user import LoginRequest, ResendOtp, UserResponse, VerifyOtp
from portal.services.activity_service import log_activity
from portal.services.auth_middleware import get_current_user
from portal.services.auth_service import verify_password
from portal.services.credential_store import find_by_email, find_by_phone, get_user
from portal.services.otp_service import deliver_otp, issue_otp, verify_otp
from portal.services.role_service import resolve_role
from portal.services.session_service import (
    clear_session_cookie,
    end_session,
    set_session_cookie,
    start_session,
)
from portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


def _destination(user: User, channel: OtpChannel) -> str:
    destination = user.email if channel == OtpChannel.email else user.phone
    if not destination:
        raise ValidationError(f"No {channel.value} on file for this account")
    return destination


def _user_payload(db: Session, user: User) -> dict:
    return {
        "user": UserResponse.model_validate(user).model_dump(),
        **resolve_role(db, user.id).model_dump(),
    }


# Step one: password check, then a code is sent on the requested channel
@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        channel = body.channel
        user = find_by_email(db, body.email) if body.email else find_by_phone(db, body.phone)
        if not user or not verify_password(body.password, user.password_hash):
            logger.info("Login rejected for %s", body.email or body.phone)
            raise Unauthorized("Invalid credentials")

        destination = _destination(user, channel)
        code = issue_otp(db, user.id, channel)
        deliver_otp(code, channel, destination)

        return create_response(
            message="OTP sent successfully",
            data={"temp_user_id": user.id, "channel": channel.value},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/resend-otp")
def resend_otp(body: ResendOtp, db: Session = Depends(get_db)):
    try:
        user = get_user(db, body.temp_user_id)
        if not user:
            raise NotFound("User not found")

        destination = _destination(user, body.channel)
        code = issue_otp(db, user.id, body.channel)
        deliver_otp(code, body.channel, destination)

        return create_response(
            message="OTP resent successfully",
            data={"temp_user_id": user.id, "channel": body.channel.value},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/verify-otp")
def verify_login_otp(body: VerifyOtp, request: Request, db: Session = Depends(get_db)):
    try:
        user = get_user(db, body.temp_user_id)
        if not user:
            raise NotFound("User not found")

        verify_otp(db, user.id, body.code, body.channel)
        token = start_session(db, user)
        log_activity(db, user.id, "login", "session", details={"channel": body.channel.value}, request=request)

        response = create_response(
            message="Login successful",
            data=_user_payload(db, user),
            status_code=status.HTTP_200_OK
        )
        set_session_cookie(response, token)
        return response
    except Exception as exc:
        return handle_exception(exc)


@router.get("/auth/user")
def current_user(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return create_response(
            message="User fetched successfully",
            data=_user_payload(db, user),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/logout")
def logout(
    token: str | None = Depends(settings.cookie_scheme),
    db: Session = Depends(get_db),
):
    try:
        user_id = end_session(db, token)
        response = create_response(
            message="Logged out successfully",
            data={"user_id": user_id},
            status_code=status.HTTP_200_OK
        )
        clear_session_cookie(response)
        return response
    except Exception as exc:
        return handle_exception(exc)


@router.get("/user/role")
def user_role(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        return create_response(
            message="Role resolved successfully",
            data=resolve_role(db, user.id).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
