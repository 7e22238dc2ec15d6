"""Attach generated statements to investors named in an uploaded sheet.

A row names its investor either by id or by full name. Names are compared
after normalisation (trimmed, inner whitespace collapsed, lower-cased) against
"first last" of every investor profile. Exactly one hit generates a PDF and a
Statement record; no hit or several hits send the row to ``unmatched`` with a
reason. No row is dropped.
"""
import logging
from collections import defaultdict
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.models.investor import InvestorProfile, Portfolio
from portal.models.notification import Notification
from portal.models.statement import Statement, StatementType
from portal.schemas.statement import MatchResult, StatementResponse, StatementRow, UnmatchedRow
from portal.services.pdf_service import generate_statement_pdf, statement_file_name

logger = logging.getLogger(__name__)

NOT_FOUND = "Investor not found"
AMBIGUOUS = "Ambiguous investor name"


def normalize_name(name: str | None) -> str:
    return " ".join((name or "").lower().strip().split())


def _name_index(db: Session) -> dict[str, list[InvestorProfile]]:
    index = defaultdict(list)
    for investor in db.query(InvestorProfile).order_by(InvestorProfile.id).all():
        index[normalize_name(f"{investor.first_name or ''} {investor.last_name or ''}")].append(investor)
    return index


def next_version(db: Session, investor_id: int, statement_type: StatementType, period: str, year: int) -> int:
    current = (
        db.query(func.max(Statement.version))
        .filter(
            Statement.investor_id == investor_id,
            Statement.type == statement_type,
            Statement.period == period,
            Statement.year == year,
        )
        .scalar()
    )
    return (current or 0) + 1


def _unused_version(db: Session, investor_id: int, statement_type: StatementType, period: str, year: int) -> int:
    # Periods that differ only in punctuation share a file name stem
    version = next_version(db, investor_id, statement_type, period, year)
    while db.query(Statement.id).filter(
        Statement.file_name == statement_file_name(statement_type.value, period, year, investor_id, version)
    ).first():
        version += 1
    return version


def create_statement(
    db: Session,
    investor: InvestorProfile,
    statement_type: StatementType | str,
    period: str,
    year: int,
    month: int | None = None,
    quarter: int | None = None,
    output_dir: Path | str | None = None,
) -> Statement:
    """Render the PDF for one investor and persist the Statement row."""
    statement_type = StatementType(statement_type)
    portfolio = (
        db.query(Portfolio)
        .filter(Portfolio.investor_id == investor.id)
        .order_by(Portfolio.id)
        .first()
    )
    version = _unused_version(db, investor.id, statement_type, period, year)
    pdf = generate_statement_pdf(
        investor,
        portfolio,
        statement_type.value,
        period,
        year,
        output_dir=output_dir,
        version=version,
    )

    statement = Statement(
        investor_id=investor.id,
        type=statement_type,
        period=period,
        year=year,
        month=month,
        quarter=quarter,
        file_name=pdf["file_name"],
        file_url=pdf["file_url"],
        file_size=pdf["file_size"],
        version=version,
    )
    db.add(statement)
    db.flush()
    db.add(
        Notification(
            investor_id=investor.id,
            title="New statement available",
            message=f"Your {statement_type.value} statement for {period} {year} is ready.",
            type="statement",
            link=f"/api/statements/{statement.id}/download",
        )
    )
    db.commit()
    db.refresh(statement)
    return statement


def find_investor(
    db: Session,
    row: StatementRow,
    index: dict[str, list[InvestorProfile]],
) -> tuple[InvestorProfile | None, str | None]:
    """Return (investor, None) on a unique hit, else (None, reason)."""
    if row.investor_id is not None:
        investor = db.query(InvestorProfile).filter(InvestorProfile.id == row.investor_id).first()
        return (investor, None) if investor else (None, NOT_FOUND)

    candidates = index.get(normalize_name(row.investor_name), [])
    if not row.investor_name or not candidates:
        return None, NOT_FOUND
    if len(candidates) > 1:
        return None, AMBIGUOUS
    return candidates[0], None


def match_and_attach(
    db: Session,
    rows: list[StatementRow],
    output_dir: Path | str | None = None,
) -> MatchResult:
    result = MatchResult()
    index = _name_index(db)

    for row in rows:
        investor, reason = find_investor(db, row, index)
        if investor is None:
            result.unmatched.append(UnmatchedRow(row=row.model_dump(mode="json"), reason=reason))
            continue

        try:
            statement = create_statement(
                db, investor, row.type, row.period, row.year, output_dir=output_dir
            )
        except Exception:
            db.rollback()
            logger.exception("Statement generation failed for investor_id=%s", investor.id)
            result.unmatched.append(
                UnmatchedRow(row=row.model_dump(mode="json"), reason="Failed to generate statement")
            )
            continue
        result.matched.append(StatementResponse.model_validate(statement))

    logger.info(
        "Statement upload processed: %s matched, %s unmatched",
        len(result.matched),
        len(result.unmatched),
    )
    return result
