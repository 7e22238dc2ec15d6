from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from portal.database import Base


class LeadCapture(Base):
    __tablename__ = "lead_captures"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=True)
    company = Column(String(200), nullable=True)
    investment_range = Column(String(80), nullable=True)
    message = Column(Text, nullable=True)
    source = Column(String(40), default="website", nullable=True)
    status = Column(String(20), default="new", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
