from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from portal.database import Base


class Allocation(Base):
    __tablename__ = "allocations"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True)
    asset_class = Column(String(80), nullable=False)
    asset_name = Column(String(200), nullable=True)
    percentage = Column(String(32), nullable=False)
    amount = Column(String(32), nullable=False)
    status = Column(String(30), default="deployed", nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
