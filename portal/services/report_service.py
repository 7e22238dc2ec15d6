"""Admin reports over portfolios, transactions and NAV history.

Amounts are stored as decimal strings; totals are computed with Decimal and
returned as plain strings so no precision is lost on the way to the client.
"""
import csv
import io
import logging
from collections import Counter
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from portal.models.fund import NavHistory
from portal.models.investor import InvestorProfile, Portfolio
from portal.models.transaction import Transaction
from portal.schemas.fund import NavResponse
from portal.schemas.investor import TransactionResponse

logger = logging.getLogger(__name__)

INFLOW_TYPES = ("investment", "contribution")
OUTFLOW_TYPES = ("redemption", "withdrawal")

# Upper bounds (exclusive) on total invested; anything above is "vip"
INVESTMENT_TIERS = (
    ("small", Decimal("1000000")),
    ("medium", Decimal("5000000")),
    ("large", Decimal("10000000")),
)

HISTORY_LIMIT = 12
RECENT_LIMIT = 10


def to_decimal(value) -> Decimal:
    try:
        return Decimal(str(value or "0"))
    except InvalidOperation:
        logger.warning("Skipping non-numeric amount %r", value)
        return Decimal("0")


def decimal_sum(values) -> str:
    return format(sum((to_decimal(v) for v in values), Decimal("0")), "f")


def _nav_history(db: Session) -> list[NavHistory]:
    return db.query(NavHistory).order_by(NavHistory.date.desc(), NavHistory.id.desc()).all()


def _first_portfolios(db: Session) -> dict[int, Portfolio]:
    portfolios = {}
    for portfolio in db.query(Portfolio).order_by(Portfolio.id).all():
        portfolios.setdefault(portfolio.investor_id, portfolio)
    return portfolios


def aum_report(db: Session) -> dict:
    history = _nav_history(db)
    return {
        "total_aum": history[0].aum if history else "0",
        "investor_count": db.query(InvestorProfile).count(),
        "history": [NavResponse.model_validate(h).model_dump() for h in history[:HISTORY_LIMIT]],
    }


def inflows_report(db: Session) -> dict:
    transactions = db.query(Transaction).order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()
    inflows = [t for t in transactions if t.type in INFLOW_TYPES]
    outflows = [t for t in transactions if t.type in OUTFLOW_TYPES]
    return {
        "total_inflows": decimal_sum(t.amount for t in inflows),
        "total_outflows": decimal_sum(t.amount for t in outflows),
        "recent_inflows": [TransactionResponse.model_validate(t).model_dump() for t in inflows[:RECENT_LIMIT]],
        "recent_outflows": [TransactionResponse.model_validate(t).model_dump() for t in outflows[:RECENT_LIMIT]],
    }


def allocations_report(db: Session) -> dict:
    portfolios = list(_first_portfolios(db).values())
    return {
        "private_credit": decimal_sum(p.private_credit_allocation for p in portfolios),
        "aif_exposure": decimal_sum(p.aif_exposure for p in portfolios),
        "cash_equivalents": decimal_sum(p.cash_equivalents for p in portfolios),
    }


def investment_tier(total_invested) -> str:
    amount = to_decimal(total_invested)
    for name, upper in INVESTMENT_TIERS:
        if amount < upper:
            return name
    return "vip"


def investor_segments(db: Session) -> dict:
    portfolios = _first_portfolios(db)
    investors = db.query(InvestorProfile).order_by(InvestorProfile.id).all()

    tiers = {"small": 0, "medium": 0, "large": 0, "vip": 0}
    for investor in investors:
        portfolio = portfolios.get(investor.id)
        tiers[investment_tier(portfolio.total_invested if portfolio else None)] += 1

    return {
        "by_type": dict(Counter(i.investor_type for i in investors)),
        "by_kyc_status": dict(Counter(i.kyc_status for i in investors)),
        "by_investment_tier": tiers,
    }


def export_csv(db: Session, report_type: str, now: datetime | None = None) -> tuple[str, str]:
    """Render one report as CSV text; returns (file name, content)."""
    now = now or datetime.utcnow()
    output = io.StringIO()
    writer = csv.writer(output)

    if report_type == "aum":
        investors = db.query(InvestorProfile).count()
        portfolios = _first_portfolios(db).values()
        writer.writerow(["Date", "Total AUM (INR)", "Active Investors"])
        writer.writerow([now.date().isoformat(), decimal_sum(p.total_invested for p in portfolios), investors])
        writer.writerow([])
        writer.writerow(["History Date", "NAV"])
        for entry in _nav_history(db):
            writer.writerow([entry.date.date().isoformat(), entry.nav])

    elif report_type == "inflows":
        writer.writerow(["Date", "Type", "Amount (INR)", "Investor ID"])
        for t in db.query(Transaction).order_by(Transaction.created_at.desc(), Transaction.id.desc()):
            writer.writerow([t.created_at.date().isoformat(), t.type, t.amount, t.investor_id])

    elif report_type == "allocations":
        writer.writerow(["Investor", "Total Invested", "Private Credit", "AIF", "Cash"])
        portfolios = _first_portfolios(db)
        for investor in db.query(InvestorProfile).order_by(InvestorProfile.id):
            p = portfolios.get(investor.id)
            if p is None:
                continue
            writer.writerow([
                investor.full_name,
                p.total_invested,
                p.private_credit_allocation or "0",
                p.aif_exposure or "0",
                p.cash_equivalents or "0",
            ])

    elif report_type == "segments":
        writer.writerow(["Investor", "Type", "KYC Status", "Risk Profile"])
        for investor in db.query(InvestorProfile).order_by(InvestorProfile.id):
            writer.writerow([investor.full_name, investor.investor_type, investor.kyc_status, investor.risk_profile or ""])

    else:
        writer.writerow(["Report", "Date"])
        writer.writerow(["Summary Report", now.isoformat()])

    file_name = f"report_{report_type}_{now.strftime('%Y%m%d_%H%M%S')}.csv"
    logger.info("Report exported: %s", file_name)
    return file_name, output.getvalue()
