"""One-time codes that gate login completion.

Each (user, channel) pair has at most one live code. Issuing a new code
supersedes the previous unused ones; a verified code is marked used and can
never be verified again.
"""
import logging
import secrets
import string
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from portal.config import settings
from portal.errors import AlreadyUsed, InvalidCode, OtpExpired
from portal.models.otp import Otp, OtpChannel
from portal.services.email_services import send_otp_email

logger = logging.getLogger(__name__)


def generate_code(length: int | None = None) -> str:
    length = length or settings.OTP_LENGTH
    return "".join(secrets.choice(string.digits) for _ in range(length))


def issue_otp(
    db: Session,
    user_id: int,
    channel: OtpChannel | str = OtpChannel.email,
    now: datetime | None = None,
) -> str:
    channel = OtpChannel(channel)
    now = now or datetime.utcnow()

    superseded = (
        db.query(Otp)
        .filter(
            Otp.user_id == user_id,
            Otp.channel == channel,
            Otp.is_used == False,
            Otp.is_superseded == False,
        )
        .update({Otp.is_superseded: True}, synchronize_session=False)
    )

    code = generate_code()
    db.add(
        Otp(
            user_id=user_id,
            code=code,
            channel=channel,
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
            is_used=False,
            is_superseded=False,
            created_at=now,
        )
    )
    db.commit()
    logger.info(
        "Issued %s OTP for user_id=%s (superseded %s earlier code(s))",
        channel.value,
        user_id,
        superseded,
    )
    return code


def verify_otp(
    db: Session,
    user_id: int,
    code: str,
    channel: OtpChannel | str = OtpChannel.email,
    now: datetime | None = None,
) -> Otp:
    channel = OtpChannel(channel)
    now = now or datetime.utcnow()

    record = (
        db.query(Otp)
        .filter(
            Otp.user_id == user_id,
            Otp.channel == channel,
            Otp.is_superseded == False,
        )
        .order_by(Otp.id.desc())
        .first()
    )

    presented = (code or "").strip().encode("utf-8")
    if not record or not secrets.compare_digest(record.code.encode("utf-8"), presented):
        logger.warning("OTP mismatch for user_id=%s channel=%s", user_id, channel.value)
        raise InvalidCode()
    if record.is_used:
        raise AlreadyUsed()
    if record.expires_at <= now:
        logger.info("Expired OTP presented for user_id=%s", user_id)
        raise OtpExpired()

    record.is_used = True
    record.used_at = now
    db.commit()
    db.refresh(record)
    return record


def deliver_otp(code: str, channel: OtpChannel | str, destination: str) -> None:
    """Hand the code to the channel's sender; phone delivery is logged only."""
    channel = OtpChannel(channel)
    if channel == OtpChannel.email:
        send_otp_email(destination, code)
        return
    logger.info("[PHONE OTP] To: %s, Code: %s", destination, code)
