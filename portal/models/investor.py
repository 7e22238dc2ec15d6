import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from portal.database import Base


class DeploymentStatus(str, enum.Enum):
    pending = "pending"
    partial = "partial"
    deployed = "deployed"


class InvestorProfile(Base):
    __tablename__ = "investor_profiles"

    id = Column(Integer, primary_key=True, index=True)
    # Profiles may be created before (or without) a login
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), unique=True, nullable=True, index=True)

    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(32), nullable=True)
    investor_type = Column(String(50), default="individual", nullable=False)
    pan_number = Column(String(20), nullable=True)
    address = Column(String, nullable=True)
    city = Column(String(120), nullable=True)
    state = Column(String(120), nullable=True)
    pincode = Column(String(12), nullable=True)
    kyc_status = Column(String(30), default="pending", nullable=False)
    risk_profile = Column(String(30), default="moderate", nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="investor_profile")
    portfolios = relationship(
        "Portfolio",
        back_populates="investor",
        cascade="all, delete-orphan",
        order_by="Portfolio.id",
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Portfolio(Base):
    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True, index=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    fund_name = Column(String(120), default="Velocity Fund", nullable=False)

    # Monetary and percentage values are kept as decimal strings
    total_invested = Column(String(32), default="0", nullable=False)
    current_value = Column(String(32), default="0", nullable=False)
    returns = Column(String(32), default="0", nullable=True)
    irr = Column(String(32), default="0", nullable=True)
    private_credit_allocation = Column(String(32), default="0", nullable=True)
    aif_exposure = Column(String(32), default="0", nullable=True)
    cash_equivalents = Column(String(32), default="0", nullable=True)

    deployment_status = Column(
        Enum(DeploymentStatus, native_enum=False),
        default=DeploymentStatus.pending,
        nullable=False,
    )
    inception_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    investor = relationship("InvestorProfile", back_populates="portfolios")
    allocations = relationship("Allocation", cascade="all, delete-orphan", order_by="Allocation.id")
