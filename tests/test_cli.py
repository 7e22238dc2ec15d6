from portal.cli import main
from portal.models.admin_user import AdminRole, AdminUser
from portal.models.investor import InvestorProfile
from portal.models.user import User
from portal.services.spreadsheet_service import parse_statement_sheet


def test_create_admin_command(db, capsys):
    assert main(["create-admin", "cli-admin@example.com", "cli-pass-1", "admin"]) == 0

    user = db.query(User).filter(User.email == "cli-admin@example.com").first()
    admin = db.query(AdminUser).filter(AdminUser.user_id == user.id).first()
    assert admin.role == AdminRole.admin
    assert "Admin user created successfully" in capsys.readouterr().out


def test_create_investor_twice_fails(db, capsys):
    assert main(["create-investor", "cli-investor@example.com", "cli-pass-1"]) == 0
    assert db.query(InvestorProfile).count() == 1

    assert main(["create-investor", "cli-investor@example.com", "cli-pass-1"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_sample_sheet_command(tmp_path):
    target = tmp_path / "sample.xlsx"

    assert main(["sample-sheet", str(target)]) == 0

    rows, errors = parse_statement_sheet(target.read_bytes())
    assert len(rows) == 3
    assert errors == []
