from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from portal.database import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    investor_id = Column(Integer, ForeignKey("investor_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    amount = Column(String(32), nullable=False)
    # pending -> pending_verification -> verified -> processed
    status = Column(String(30), default="pending", nullable=False)
    payment_method = Column(String(50), nullable=True)
    reference_number = Column(String(80), nullable=True)
    confirmation_url = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    investor = relationship("InvestorProfile", backref="transactions")
