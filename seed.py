import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from portal.config import settings
from portal.database import SessionLocal, init_db
from portal.models.admin_user import AdminRole
from portal.models.allocation import Allocation
from portal.models.investor import DeploymentStatus, InvestorProfile, Portfolio
from portal.models.user import User
from portal.services.account_service import ensure_admin_for_user, ensure_user

logger = logging.getLogger(__name__)

SEED_INVESTOR = {
    "email": "anujr3259@gmail.com",
    "password": "anujr3259",
    "first_name": "Anuj",
    "last_name": "Investor",
    "portfolio": {
        "total_invested": "1000000.00",
        "current_value": "1100000.00",
        "returns": "10.0",
        "irr": "10.0",
        "private_credit_allocation": "60",
        "aif_exposure": "25",
        "cash_equivalents": "15",
        "deployment_status": DeploymentStatus.deployed,
    },
}

# (asset class, asset name, share of current value in percent, description)
SEED_ALLOCATIONS = (
    ("Private Credit", "Senior Secured Loans", "35", "High-grade corporate lending"),
    ("Private Credit", "Mezzanine Debt", "25", "Subordinated debt instruments"),
    ("AIF", "Real Estate Fund", "15", "Commercial real estate exposure"),
    ("AIF", "Infrastructure Fund", "10", "Infrastructure assets"),
    ("Cash", "Money Market", "15", "Liquid reserves"),
)

ADMIN_PORTFOLIO = {
    "total_invested": "5000000.00",
    "current_value": "5750000.00",
    "returns": "15.0",
    "irr": "15.0",
    "deployment_status": DeploymentStatus.deployed,
}


def _ensure_investor_profile(db: Session, user: User, portfolio: dict, kyc_status: str = "verified") -> InvestorProfile:
    profile = db.query(InvestorProfile).filter(InvestorProfile.user_id == user.id).first()
    if not profile:
        profile = InvestorProfile(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            phone=user.phone,
            kyc_status=kyc_status,
        )
        db.add(profile)
        db.flush()
        logger.info("✔ Seeded investor profile for %s", user.email)

    if not db.query(Portfolio).filter(Portfolio.investor_id == profile.id).first():
        db.add(Portfolio(investor_id=profile.id, **portfolio))
        logger.info("✔ Seeded portfolio for %s", user.email)
    db.commit()
    return profile


def _ensure_allocations(db: Session, profile: InvestorProfile) -> None:
    portfolio = db.query(Portfolio).filter(Portfolio.investor_id == profile.id).order_by(Portfolio.id).first()
    if not portfolio or portfolio.allocations:
        return

    current_value = Decimal(portfolio.current_value)
    for asset_class, asset_name, percentage, description in SEED_ALLOCATIONS:
        amount = (current_value * Decimal(percentage) / 100).quantize(Decimal("0.01"))
        db.add(
            Allocation(
                portfolio_id=portfolio.id,
                asset_class=asset_class,
                asset_name=asset_name,
                percentage=percentage,
                amount=format(amount, "f"),
                description=description,
            )
        )
    db.commit()
    logger.info("✔ Seeded %s allocations for %s", len(SEED_ALLOCATIONS), profile.email)


def seed_super_admin(db: Session) -> User:
    """Default super admin; the same login also holds a personal portfolio."""
    user, created = ensure_user(
        db,
        settings.SEED_ADMIN_EMAIL,
        settings.SEED_ADMIN_PASSWORD,
        first_name="Super",
        last_name="Admin",
    )
    ensure_admin_for_user(db, user, AdminRole.super_admin, ["all"])
    _ensure_investor_profile(db, user, ADMIN_PORTFOLIO)
    logger.info("✔ Super admin %s %s", user.email, "seeded" if created else "already present")
    return user


def seed_investor(db: Session) -> User:
    user, created = ensure_user(
        db,
        SEED_INVESTOR["email"],
        SEED_INVESTOR["password"],
        first_name=SEED_INVESTOR["first_name"],
        last_name=SEED_INVESTOR["last_name"],
    )
    profile = _ensure_investor_profile(db, user, SEED_INVESTOR["portfolio"])
    _ensure_allocations(db, profile)
    logger.info("✔ Investor %s %s", user.email, "seeded" if created else "already present")
    return user


def run_seed(db: Session | None = None):
    owns_session = db is None
    db = db or SessionLocal()
    try:
        seed_super_admin(db)
        seed_investor(db)
    except Exception:
        db.rollback()
        logger.exception("❌ Seeding error")
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    init_db()
    run_seed()
