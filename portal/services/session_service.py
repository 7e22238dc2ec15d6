import logging

from fastapi.responses import Response
from sqlalchemy.orm import Session

from portal.config import settings
from portal.errors import SessionInvalidated, Unauthorized
from portal.models.user import User
from portal.services.auth_service import create_access_token, decode_access_token, new_session_id

logger = logging.getLogger(__name__)


def start_session(db: Session, user: User) -> str:
    """Rotate the user's session id and return the signed cookie value.

    Storing a fresh id invalidates whatever session the user held before.
    """
    session_id = new_session_id()
    user.active_session_token = session_id
    db.commit()
    db.refresh(user)
    logger.info("Session started for user_id=%s", user.id)
    return create_access_token({"sub": str(user.id), "jti": session_id})


def resolve_session(db: Session, token: str | None) -> User:
    if not token:
        raise Unauthorized("Authentication required")

    payload = decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("User not found")

    if not user.active_session_token or user.active_session_token != payload["jti"]:
        logger.warning("Stale session presented for user_id=%s", user.id)
        raise SessionInvalidated()
    return user


def end_session(db: Session, token: str | None) -> int | None:
    """Clear the stored session when the presented cookie is still the live one."""
    if not token:
        return None
    try:
        user = resolve_session(db, token)
    except Unauthorized:
        return None
    user.active_session_token = None
    db.commit()
    logger.info("Session ended for user_id=%s", user.id)
    return user.id


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        path="/",
    )
