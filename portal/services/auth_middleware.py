from fastapi import Depends
from sqlalchemy.orm import Session

from portal.config import settings
from portal.database import get_db
from portal.errors import Forbidden, NotFound
from portal.models.admin_user import AdminRole
from portal.models.investor import InvestorProfile
from portal.models.user import User
from portal.services.role_service import get_admin_user, get_investor_profile, resolve_role
from portal.services.session_service import resolve_session


def get_current_session(
    token: str | None = Depends(settings.cookie_scheme),
    db: Session = Depends(get_db)
):
    user = resolve_session(db, token)
    return {"user": user, "token": token, "db": db}


def get_current_user(auth_context=Depends(get_current_session)) -> User:
    return auth_context["user"]


def require_role(auth_context=Depends(get_current_session)):
    """Any authenticated user holding at least one role."""
    db: Session = auth_context["db"]
    role = resolve_role(db, auth_context["user"].id)
    if role.role is None:
        raise Forbidden("No portal role assigned")
    auth_context["role"] = role
    return auth_context


def require_investor(auth_context=Depends(get_current_session)) -> InvestorProfile:
    db: Session = auth_context["db"]
    profile = get_investor_profile(db, auth_context["user"].id)
    if not profile:
        raise Forbidden("Investor access required")
    return profile


def require_admin(auth_context=Depends(get_current_session)) -> User:
    db: Session = auth_context["db"]
    user: User = auth_context["user"]
    admin = get_admin_user(db, user.id)
    if not admin or not admin.is_active:
        raise Forbidden("Admin access required")
    return user


def require_super_admin(auth_context=Depends(get_current_session)) -> User:
    db: Session = auth_context["db"]
    user: User = auth_context["user"]
    admin = get_admin_user(db, user.id)
    if not admin or not admin.is_active or admin.role != AdminRole.super_admin:
        raise Forbidden("Super admin access required")
    return user


def get_investor_or_404(db: Session, investor_id: int) -> InvestorProfile:
    investor = db.query(InvestorProfile).filter(InvestorProfile.id == investor_id).first()
    if not investor:
        raise NotFound("Investor not found")
    return investor
