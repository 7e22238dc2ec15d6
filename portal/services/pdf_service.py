import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from portal.config import settings
from portal.models.investor import InvestorProfile, Portfolio

logger = logging.getLogger(__name__)

STATEMENTS_URL_PREFIX = "/statements"


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="FirmTitle",
        parent=styles["Title"],
        fontSize=24,
        textColor=HexColor("#1a365d"),
        alignment=TA_CENTER,
        fontName="Helvetica-Bold",
    ))
    styles.add(ParagraphStyle(
        name="FirmSubtitle",
        parent=styles["Normal"],
        fontSize=16,
        textColor=HexColor("#4a5568"),
        alignment=TA_CENTER,
        spaceAfter=24,
    ))
    styles.add(ParagraphStyle(
        name="StatementFooter",
        parent=styles["Normal"],
        fontSize=10,
        textColor=HexColor("#718096"),
        alignment=TA_CENTER,
        fontName="Helvetica-Oblique",
    ))
    return styles


def _section_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table([[title, ""], *rows], colWidths=[2.5 * inch, 3.5 * inch])
    table.setStyle(TableStyle([
        ("SPAN", (0, 0), (1, 0)),
        ("BACKGROUND", (0, 0), (1, 0), HexColor("#2d3748")),
        ("TEXTCOLOR", (0, 0), (1, 0), colors.white),
        ("FONTNAME", (0, 0), (1, 0), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (1, 0), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 11),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    return table


def format_amount(value: str | None) -> str:
    if not value:
        return "N/A"
    try:
        return f"Rs. {Decimal(value):,.2f}"
    except InvalidOperation:
        return value


def statement_path(file_name: str) -> Path:
    return Path(settings.STATEMENTS_DIR) / file_name


def statement_file_name(statement_type: str, period: str, year: int, investor_id: int, version: int = 1) -> str:
    safe_period = re.sub(r"[^A-Za-z0-9]+", "_", period).strip("_") or "period"
    suffix = f"_v{version}" if version > 1 else ""
    return f"{statement_type}_{safe_period}_{year}_{investor_id}{suffix}.pdf"


def generate_statement_pdf(
    investor: InvestorProfile,
    portfolio: Portfolio | None,
    statement_type: str,
    period: str,
    year: int,
    output_dir: Path | str | None = None,
    version: int = 1,
) -> dict:
    """Render an investment statement and write it under the statements directory.

    Returns the file name, absolute path, public url and size in bytes.
    """
    output_dir = Path(output_dir or settings.STATEMENTS_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)

    file_name = statement_file_name(statement_type, period, year, investor.id, version)
    file_path = output_dir / file_name
    styles = _styles()
    now = datetime.utcnow()

    story = [
        Paragraph("GODMAN CAPITAL", styles["FirmTitle"]),
        Paragraph("Investment Statement", styles["FirmSubtitle"]),
        Paragraph(f"<b>Investor:</b> {investor.full_name}", styles["BodyText"]),
        Paragraph(f"<b>Email:</b> {investor.email or 'N/A'}", styles["BodyText"]),
        Spacer(1, 0.3 * inch),
        _section_table("Statement Details", [
            ("Statement Type", statement_type.capitalize()),
            ("Period", period),
            ("Year", str(year)),
            ("Date Generated", now.strftime("%d/%m/%Y")),
        ]),
        Spacer(1, 0.3 * inch),
        _section_table("Portfolio Summary", [
            ("Fund", portfolio.fund_name if portfolio else "N/A"),
            ("Total Invested", format_amount(portfolio.total_invested if portfolio else None)),
            ("Current Value", format_amount(portfolio.current_value if portfolio else None)),
            ("Returns", f"{portfolio.returns}%" if portfolio and portfolio.returns else "N/A"),
        ]),
        Spacer(1, 0.5 * inch),
        Paragraph(
            "This is a computer-generated statement and does not require a signature.",
            styles["StatementFooter"],
        ),
        Paragraph(f"Generated on {now.strftime('%d/%m/%Y %H:%M')} UTC", styles["StatementFooter"]),
    ]

    doc = SimpleDocTemplate(
        str(file_path),
        pagesize=A4,
        rightMargin=72,
        leftMargin=72,
        topMargin=72,
        bottomMargin=72,
        title=f"{statement_type.capitalize()} statement {period} {year}",
    )
    doc.build(story)

    size = file_path.stat().st_size
    logger.info("Generated statement PDF %s (%s bytes)", file_name, size)
    return {
        "file_name": file_name,
        "file_path": file_path,
        "file_url": f"{STATEMENTS_URL_PREFIX}/{file_name}",
        "file_size": size,
    }
