from io import BytesIO

import pytest
from openpyxl import Workbook

from conftest import TEST_STATEMENTS_DIR
from portal.errors import ValidationError
from portal.models.investor import InvestorProfile
from portal.models.statement import Statement
from portal.schemas.statement import StatementRow
from portal.services.account_service import create_investor_account
from portal.services.spreadsheet_service import parse_statement_sheet, write_sample_sheet
from portal.services.statement_matcher import AMBIGUOUS, NOT_FOUND, create_statement, match_and_attach, normalize_name


@pytest.fixture()
def anuj(db):
    return create_investor_account(
        db,
        email="anuj@example.com",
        password="anuj-pass",
        first_name="Anuj",
        last_name="Investor",
        investment_amount="1000000.00",
    )


def _sheet(rows, headers=("investorName", "type", "period", "year")) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_normalize_name_collapses_whitespace_and_case():
    assert normalize_name("  Anuj   INVESTOR ") == "anuj investor"
    assert normalize_name(None) == ""


def test_matching_row_generates_pdf_and_statement(db, anuj, tmp_path):
    rows = [StatementRow(investor_name="anuj  investor", type="Monthly", period="January", year=2025)]

    result = match_and_attach(db, rows, output_dir=tmp_path)

    assert len(result.matched) == 1
    assert result.unmatched == []
    statement = result.matched[0]
    assert statement.investor_id == anuj.id
    assert statement.file_url == f"/statements/{statement.file_name}"
    assert (tmp_path / statement.file_name).read_bytes().startswith(b"%PDF")


def test_unknown_name_lands_in_unmatched(db, anuj, tmp_path):
    rows = [
        StatementRow(investor_name="Anuj Investor", period="Q1", type="quarterly", year=2025),
        StatementRow(investor_name="Nonexistent Person", period="Q1", type="quarterly", year=2025),
    ]

    result = match_and_attach(db, rows, output_dir=tmp_path)

    assert [s.investor_id for s in result.matched] == [anuj.id]
    assert len(result.unmatched) == 1
    assert result.unmatched[0].reason == NOT_FOUND
    assert result.unmatched[0].row["investor_name"] == "Nonexistent Person"


def test_duplicate_names_are_not_guessed(db, anuj, tmp_path):
    db.add(InvestorProfile(first_name="Anuj", last_name="Investor", email="twin@example.com"))
    db.commit()

    result = match_and_attach(
        db, [StatementRow(investor_name="Anuj Investor", period="March", year=2025)], output_dir=tmp_path
    )

    assert result.matched == []
    assert result.unmatched[0].reason == AMBIGUOUS
    assert db.query(Statement).count() == 0


def test_investor_id_takes_precedence_over_name(db, anuj, tmp_path):
    row = StatementRow(investor_id=anuj.id, investor_name="Someone Else", period="FY 2024-25", type="annual", year=2025)

    result = match_and_attach(db, [row], output_dir=tmp_path)

    assert result.matched[0].investor_id == anuj.id
    assert result.matched[0].file_name == f"annual_FY_2024_25_2025_{anuj.id}.pdf"


def test_regenerating_same_period_bumps_version(db, anuj, tmp_path):
    row = StatementRow(investor_name="Anuj Investor", period="January", year=2025)

    first = match_and_attach(db, [row], output_dir=tmp_path).matched[0]
    second = match_and_attach(db, [row], output_dir=tmp_path).matched[0]

    assert first.version == 1
    assert second.version == 2
    assert first.file_name != second.file_name


def test_periods_sharing_a_file_stem_get_separate_files(db, anuj, tmp_path):
    spaced = create_statement(db, anuj, "quarterly", "Q1 2025", 2025, output_dir=tmp_path)
    dashed = create_statement(db, anuj, "quarterly", "Q1-2025", 2025, output_dir=tmp_path)

    assert spaced.file_name == f"quarterly_Q1_2025_2025_{anuj.id}.pdf"
    assert dashed.file_name == f"quarterly_Q1_2025_2025_{anuj.id}_v2.pdf"
    assert (tmp_path / spaced.file_name).is_file()
    assert (tmp_path / dashed.file_name).is_file()


def test_parse_sheet_accepts_header_aliases():
    content = _sheet(
        [("Anuj Investor", "monthly", "January", 2025), (None, None, None, None)],
        headers=("Name", "Type", "Period", "Year"),
    )

    rows, errors = parse_statement_sheet(content)

    assert errors == []
    assert len(rows) == 1
    assert rows[0].investor_name == "Anuj Investor"
    assert rows[0].year == 2025


def test_parse_sheet_reports_invalid_rows():
    content = _sheet([("Anuj Investor", "weekly", "January", 2025)])

    rows, errors = parse_statement_sheet(content)

    assert rows == []
    assert len(errors) == 1
    assert "type" in errors[0].reason


def test_parse_sheet_rejects_non_excel_bytes():
    with pytest.raises(ValidationError):
        parse_statement_sheet(b"investorName,type\nAnuj,monthly\n")


def test_sample_sheet_parses_cleanly(tmp_path):
    path = write_sample_sheet(tmp_path / "sample.xlsx")

    rows, errors = parse_statement_sheet(path.read_bytes())

    assert errors == []
    assert len(rows) == 3


def test_default_output_dir_is_configured_statements_dir(db, anuj):
    result = match_and_attach(db, [StatementRow(investor_name="Anuj Investor", period="June", year=2025)])

    assert (TEST_STATEMENTS_DIR / result.matched[0].file_name).exists()
