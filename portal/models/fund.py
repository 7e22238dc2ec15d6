from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from portal.database import Base


class NavHistory(Base):
    __tablename__ = "nav_history"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, index=True)
    # Decimal strings, like the portfolio values
    nav = Column(String(32), nullable=False)
    aum = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ReturnsHistory(Base):
    __tablename__ = "returns_history"

    id = Column(Integer, primary_key=True, index=True)
    period = Column(String(40), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=True)
    quarter = Column(Integer, nullable=True)
    gross_return = Column(String(32), nullable=False)
    net_return = Column(String(32), nullable=False)
    benchmark = Column(String(32), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
