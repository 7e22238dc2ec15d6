import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from portal.database import Base


class StatementType(str, enum.Enum):
    monthly = "monthly"
    quarterly = "quarterly"
    annual = "annual"


class Statement(Base):
    __tablename__ = "statements"

    id = Column(Integer, primary_key=True, index=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(StatementType, native_enum=False), nullable=False)
    period = Column(String(40), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=True)
    quarter = Column(Integer, nullable=True)
    file_name = Column(String(255), unique=True, nullable=False)
    file_url = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=True)
    version = Column(Integer, default=1, nullable=False)
    generated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    investor = relationship("InvestorProfile", backref="statements")
