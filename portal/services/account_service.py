import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.errors import DuplicateKey, ValidationError
from portal.models.admin_user import AdminRole, AdminUser
from portal.models.investor import InvestorProfile, Portfolio
from portal.models.user import User
from portal.schemas.user import UserCreate
from portal.services.auth_service import hash_password
from portal.services.credential_store import create_user, find_by_email, set_password

logger = logging.getLogger(__name__)

_PASSWORD_ALPHABET = string.ascii_uppercase + string.digits


def generate_temp_password() -> str:
    suffix = "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(6))
    return f"GC{suffix}@2025"


def create_investor_account(
    db: Session,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    investment_amount: str | None = None,
    investor_type: str = "individual",
    pan_number: str | None = None,
    kyc_status: str = "pending",
    current_value: str | None = None,
    returns: str = "0",
) -> InvestorProfile:
    """Create the login, the linked investor profile and an opening portfolio."""
    user = create_user(
        db,
        UserCreate(
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        ),
        commit=False,
    )
    profile = InvestorProfile(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        email=user.email,
        phone=user.phone,
        investor_type=investor_type,
        pan_number=pan_number,
        kyc_status=kyc_status,
    )
    db.add(profile)
    db.flush()

    invested = investment_amount or "0"
    db.add(
        Portfolio(
            investor_id=profile.id,
            total_invested=invested,
            current_value=current_value or invested,
            returns=returns,
            irr=returns,
        )
    )
    db.commit()
    db.refresh(profile)
    logger.info("Investor account created email=%s investor_id=%s", user.email, profile.id)
    return profile


def create_admin_account(
    db: Session,
    email: str,
    password: str,
    role: AdminRole | str = AdminRole.admin,
    first_name: str = "System",
    last_name: str = "Admin",
    phone: str | None = None,
    permissions: list[str] | None = None,
) -> AdminUser:
    user = create_user(
        db,
        UserCreate(
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        ),
        commit=False,
    )
    admin = AdminUser(
        user_id=user.id,
        role=AdminRole(role),
        permissions=permissions if permissions is not None else ["all"],
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin account created email=%s role=%s", user.email, admin.role.value)
    return admin


def ensure_admin_for_user(
    db: Session,
    user: User,
    role: AdminRole | str = AdminRole.admin,
    permissions: list[str] | None = None,
) -> AdminUser:
    """Find-or-create the admin record for an existing user.

    The unique index on admin_users.user_id settles concurrent runs: the
    loser of the race re-reads the winner's row.
    """
    existing = db.query(AdminUser).filter(AdminUser.user_id == user.id).first()
    if existing:
        existing.role = AdminRole(role)
        existing.is_active = True
        if permissions is not None:
            existing.permissions = permissions
        db.commit()
        db.refresh(existing)
        return existing

    admin = AdminUser(
        user_id=user.id,
        role=AdminRole(role),
        permissions=permissions if permissions is not None else ["all"],
        is_active=True,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return db.query(AdminUser).filter(AdminUser.user_id == user.id).one()
    db.refresh(admin)
    return admin


def ensure_user(db: Session, email: str, password: str, **fields) -> tuple[User, bool]:
    """Return (user, created); an existing user gets the new password."""
    user = find_by_email(db, email)
    if user:
        return set_password(db, user, hash_password(password)), False

    try:
        user = create_user(
            db,
            UserCreate(email=email, password_hash=hash_password(password), **fields),
        )
    except DuplicateKey:
        # Another process created it between the lookup and the insert
        user = find_by_email(db, email)
        if not user:
            raise
        return user, False
    return user, True


def issue_credentials(db: Session, investor: InvestorProfile) -> tuple[User, str]:
    """Give an investor profile a fresh temporary password.

    Profiles created without a login (bulk upload) get a user created and
    linked; existing logins have their password replaced.
    """
    if not investor.email:
        raise ValidationError("Investor has no email on file")

    password = generate_temp_password()
    user = investor.user
    if user is not None:
        set_password(db, user, hash_password(password))
        return user, password

    user = find_by_email(db, investor.email)
    if user is None:
        user = create_user(
            db,
            UserCreate(
                email=investor.email,
                phone=investor.phone,
                password_hash=hash_password(password),
                first_name=investor.first_name,
                last_name=investor.last_name,
            ),
            commit=False,
        )
    elif db.query(InvestorProfile).filter(InvestorProfile.user_id == user.id).first():
        raise DuplicateKey("Another investor profile already uses this email")
    else:
        user.password_hash = hash_password(password)

    investor.user_id = user.id
    db.commit()
    db.refresh(investor)
    logger.info("Credentials issued investor_id=%s user_id=%s", investor.id, user.id)
    return user, password


def bulk_create_investors(db: Session, rows) -> tuple[list[InvestorProfile], list[dict]]:
    """Create login-less profiles with an opening portfolio; known emails are skipped."""
    created, skipped = [], []
    for row in rows:
        taken = (
            db.query(InvestorProfile.id).filter(InvestorProfile.email == row.email).first()
            or find_by_email(db, row.email)
        )
        if taken:
            skipped.append({"email": row.email, "reason": "Email already registered"})
            continue

        profile = InvestorProfile(
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            phone=row.phone,
            pan_number=row.pan_number,
            investor_type=row.investor_type,
            kyc_status="pending",
        )
        db.add(profile)
        db.flush()
        db.add(
            Portfolio(
                investor_id=profile.id,
                total_invested=row.investment_amount,
                current_value=row.investment_amount,
                returns="0",
                irr="0",
            )
        )
        created.append(profile)

    db.commit()
    for profile in created:
        db.refresh(profile)
    logger.info("Bulk investor upload: %s created, %s skipped", len(created), len(skipped))
    return created, skipped
