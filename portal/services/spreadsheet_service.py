import logging
import zipfile
from datetime import datetime
from io import BytesIO
from pathlib import Path

import pydantic
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException

from portal.errors import ValidationError
from portal.schemas.statement import StatementRow, UnmatchedRow

logger = logging.getLogger(__name__)

# Accepted header spellings, keyed by StatementRow field
HEADER_ALIASES = {
    "investor_id": ("investorid", "investor_id", "investor id"),
    "investor_name": ("investorname", "investor_name", "investor name", "name"),
    "type": ("type", "statement type", "statement_type"),
    "period": ("period",),
    "year": ("year",),
}


def _header_map(header_row) -> dict[int, str]:
    mapping = {}
    for index, cell in enumerate(header_row):
        if cell is None:
            continue
        label = str(cell).strip().lower()
        for field, aliases in HEADER_ALIASES.items():
            if label in aliases and field not in mapping.values():
                mapping[index] = field
                break
    return mapping


def _cell_value(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip() or None
    return value


def parse_statement_sheet(content: bytes) -> tuple[list[StatementRow], list[UnmatchedRow]]:
    """Read the first worksheet of an xlsx upload into validated rows.

    The first row is the header. Blank rows are skipped; rows failing
    validation are returned as errors with the raw values attached.
    """
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise ValidationError("Excel file is empty or invalid") from exc

    try:
        sheet = workbook.worksheets[0]
        rows_iter = sheet.iter_rows(values_only=True)
        header = next(rows_iter, None)
        if not header:
            raise ValidationError("Excel file is empty or invalid")

        columns = _header_map(header)
        if "investor_name" not in columns.values() and "investor_id" not in columns.values():
            raise ValidationError("Sheet needs an investorName or investorId column")

        rows: list[StatementRow] = []
        errors: list[UnmatchedRow] = []
        for values in rows_iter:
            raw = {
                field: _cell_value(values[index])
                for index, field in columns.items()
                if index < len(values)
            }
            if all(value is None for value in raw.values()):
                continue

            data = {key: value for key, value in raw.items() if value is not None}
            data.setdefault("year", datetime.utcnow().year)
            try:
                rows.append(StatementRow(**data))
            except pydantic.ValidationError as exc:
                reason = "; ".join(
                    f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                )
                errors.append(UnmatchedRow(row={k: _jsonable(v) for k, v in raw.items()}, reason=reason))
    finally:
        workbook.close()

    if not rows and not errors:
        raise ValidationError("Excel file is empty or invalid")

    logger.info("Parsed statement sheet: %s valid row(s), %s invalid", len(rows), len(errors))
    return rows, errors


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def write_sample_sheet(path: Path | str) -> Path:
    """Write an example upload workbook with the expected headers."""
    path = Path(path)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Statements"

    headers = ["investorName", "type", "period", "year", "investorId"]
    for column, label in enumerate(headers, start=1):
        cell = sheet.cell(row=1, column=column, value=label)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="2D3748")

    samples = [
        ("Anuj Investor", "monthly", "January", 2025, None),
        ("Anuj Investor", "quarterly", "Q1", 2025, None),
        (None, "annual", "FY 2024-25", 2025, 1),
    ]
    for row_index, sample in enumerate(samples, start=2):
        for column, value in enumerate(sample, start=1):
            sheet.cell(row=row_index, column=column, value=value)

    for column in "ABCDE":
        sheet.column_dimensions[column].width = 18

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info("Sample statement sheet written to %s", path)
    return path
