import logging

from sqlalchemy.orm import Session

from portal.models.admin_user import AdminRole, AdminUser
from portal.models.investor import InvestorProfile
from portal.schemas.user import RoleResolution

logger = logging.getLogger(__name__)


def get_admin_user(db: Session, user_id: int) -> AdminUser | None:
    return db.query(AdminUser).filter(AdminUser.user_id == user_id).first()


def get_investor_profile(db: Session, user_id: int) -> InvestorProfile | None:
    return db.query(InvestorProfile).filter(InvestorProfile.user_id == user_id).first()


def resolve_role(db: Session, user_id: int) -> RoleResolution:
    """Work out the primary role of a user.

    An active AdminUser record wins over an investor profile, but the
    investor linkage is still reported so one login can administer the
    platform and hold a personal portfolio. With neither record the role is
    None and protected routes must refuse the request.
    """
    admin = get_admin_user(db, user_id)
    investor = get_investor_profile(db, user_id)

    resolution = RoleResolution(investor_id=investor.id if investor else None)

    if admin and admin.is_active:
        is_super_admin = admin.role == AdminRole.super_admin
        resolution.role = "super_admin" if is_super_admin else "admin"
        resolution.admin_id = admin.id
        resolution.is_super_admin = is_super_admin
    elif investor:
        resolution.role = "investor"

    logger.debug("Resolved user_id=%s -> %s", user_id, resolution.model_dump())
    return resolution
