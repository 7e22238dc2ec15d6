from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from conftest import login
from portal import main
from portal.models.activity_log import ActivityLog
from portal.models.admin_user import AdminRole
from portal.models.investor import InvestorProfile, Portfolio
from portal.models.statement import Statement
from portal.models.transaction import Transaction
from portal.models.user import User
from portal.services.account_service import create_admin_account, create_investor_account

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture()
def admin_client(client, db):
    create_admin_account(db, "ops@example.com", "ops-pass", role=AdminRole.admin)
    login(client, "ops@example.com", "ops-pass")
    return client


def _workbook(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["investorName", "type", "period", "year"])
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_admin_creates_investor_with_generated_password(admin_client, db):
    response = admin_client.post(
        "/api/admin/investors",
        json={"first_name": "Neha", "last_name": "Gupta", "email": "Neha@Example.com", "investment_amount": "50,000"},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "neha@example.com"
    assert data["portfolio"]["total_invested"] == "50000"
    temp_password = data["credentials"]["temp_password"]
    assert temp_password.startswith("GC") and temp_password.endswith("@2025")

    investor_browser = TestClient(main.app)
    assert login(investor_browser, "neha@example.com", temp_password).json()["data"]["role"] == "investor"


def test_duplicate_investor_email_is_400(admin_client, db):
    body = {"first_name": "Neha", "last_name": "Gupta", "email": "neha@example.com"}
    admin_client.post("/api/admin/investors", json=body)

    response = admin_client.post("/api/admin/investors", json=body)

    assert response.status_code == 400


def test_mismatched_passwords_are_rejected(admin_client):
    response = admin_client.post(
        "/api/admin/investors",
        json={
            "first_name": "Neha",
            "last_name": "Gupta",
            "email": "neha@example.com",
            "password": "abcdef",
            "confirm_password": "abcdeg",
        },
    )

    assert response.status_code == 400


def test_statement_upload_reports_matched_and_unmatched(admin_client, db):
    create_investor_account(db, email="anuj@example.com", password="anuj-pass", first_name="Anuj", last_name="Investor")
    content = _workbook([("Anuj Investor", "monthly", "January", 2025), ("Nonexistent Person", "monthly", "January", 2025)])

    response = admin_client.post(
        "/api/admin/statements/upload",
        files={"file": ("statements.xlsx", content, XLSX)},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert len(data["matched"]) == 1
    assert data["unmatched"][0]["reason"] == "Investor not found"
    assert db.query(ActivityLog).filter(ActivityLog.action == "upload").count() == 1


def test_upload_rejects_non_excel_file(admin_client):
    response = admin_client.post(
        "/api/admin/statements/upload",
        files={"file": ("statements.csv", b"a,b\n", "text/csv")},
    )

    assert response.status_code == 400


def test_statement_download_is_owner_or_admin(admin_client, db):
    owner = create_investor_account(db, email="owner@example.com", password="owner-pass", first_name="Owen", last_name="Er")
    create_investor_account(db, email="nosy@example.com", password="nosy-pass", first_name="No", last_name="Sy")
    generated = admin_client.post(
        "/api/admin/statements/generate",
        json={"investor_id": owner.id, "type": "quarterly", "period": "Q2", "year": 2025, "quarter": 2},
    )
    assert generated.status_code == 201
    statement_id = generated.json()["data"]["id"]

    as_admin = admin_client.get(f"/api/statements/{statement_id}/download")
    assert as_admin.status_code == 200
    assert as_admin.headers["content-type"] == "application/pdf"

    owner_browser = TestClient(main.app)
    login(owner_browser, "owner@example.com", "owner-pass")
    assert owner_browser.get(f"/api/statements/{statement_id}/download").status_code == 200
    assert len(owner_browser.get("/api/investor/statements").json()["data"]) == 1

    nosy_browser = TestClient(main.app)
    login(nosy_browser, "nosy@example.com", "nosy-pass")
    assert nosy_browser.get(f"/api/statements/{statement_id}/download").status_code == 403


def test_delete_statement_removes_record(admin_client, db):
    owner = create_investor_account(db, email="owner@example.com", password="owner-pass", first_name="Owen", last_name="Er")
    statement_id = admin_client.post(
        "/api/admin/statements/generate",
        json={"investor_id": owner.id, "type": "monthly", "period": "May", "year": 2025},
    ).json()["data"]["id"]

    assert admin_client.delete(f"/api/admin/statements/{statement_id}").status_code == 200
    assert admin_client.delete(f"/api/admin/statements/{statement_id}").status_code == 404


def test_transaction_verify_then_process(admin_client, db):
    investor = create_investor_account(db, email="t@example.com", password="t-pass-1", first_name="Tara", last_name="Sen")
    portfolio = db.query(Portfolio).filter(Portfolio.investor_id == investor.id).first()
    transaction = Transaction(investor_id=investor.id, portfolio_id=portfolio.id, type="investment", amount="5000")
    db.add(transaction)
    db.commit()

    early = admin_client.put(f"/api/admin/transactions/{transaction.id}/process")
    assert early.status_code == 400

    assert admin_client.put(f"/api/admin/transactions/{transaction.id}/verify").json()["data"]["status"] == "verified"
    processed = admin_client.put(f"/api/admin/transactions/{transaction.id}/process").json()["data"]
    assert processed["status"] == "processed"
    assert processed["processed_at"] is not None


def test_support_status_update(admin_client, db):
    investor_browser = TestClient(main.app)
    create_investor_account(db, email="s@example.com", password="s-pass-1", first_name="Sam", last_name="Roy")
    login(investor_browser, "s@example.com", "s-pass-1")
    request_id = investor_browser.post(
        "/api/investor/requests",
        json={"type": "kyc", "subject": "Update PAN", "description": "My PAN number needs correction."},
    ).json()["data"]["id"]

    response = admin_client.put(f"/api/admin/support-requests/{request_id}/status", json={"status": "resolved"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["resolved_at"] is not None
    assert data["investor_name"] == "Sam Roy"

    invalid = admin_client.put(f"/api/admin/support-requests/{request_id}/status", json={"status": "archived"})
    assert invalid.status_code == 400


def test_delete_investor_removes_dependents(admin_client, db):
    investor = create_investor_account(db, email="d@example.com", password="d-pass-1", first_name="Dev", last_name="Das")
    investor_id = investor.id
    file_url = admin_client.post(
        "/api/admin/statements/generate",
        json={"investor_id": investor_id, "type": "annual", "period": "FY25", "year": 2025},
    ).json()["data"]["file_url"]
    assert admin_client.get(file_url).status_code == 200

    response = admin_client.delete(f"/api/admin/investors/{investor_id}")

    assert response.status_code == 200
    db.expire_all()
    assert db.query(InvestorProfile).filter(InvestorProfile.id == investor_id).first() is None
    assert db.query(Statement).filter(Statement.investor_id == investor_id).count() == 0
    assert db.query(Portfolio).filter(Portfolio.investor_id == investor_id).count() == 0
    assert admin_client.get(f"/api/admin/investors/{investor_id}").status_code == 404
    assert admin_client.get(file_url).status_code == 404


def test_admin_announcement_crud(admin_client):
    created = admin_client.post(
        "/api/admin/announcements",
        json={"title": "Fund update", "content": "The fund has crossed its first deployment milestone."},
    )
    assert created.status_code == 201
    announcement_id = created.json()["data"]["id"]
    assert created.json()["data"]["published_at"] is not None

    hidden = admin_client.put(f"/api/admin/announcements/{announcement_id}", json={"is_active": False})
    assert hidden.json()["data"]["is_active"] is False

    published = admin_client.post(f"/api/admin/announcements/{announcement_id}/publish")
    assert published.json()["data"]["is_active"] is True

    assert admin_client.delete(f"/api/admin/announcements/{announcement_id}").status_code == 200


def test_admin_stats(admin_client, db):
    create_investor_account(db, email="a@example.com", password="a-pass-1", first_name="Ana", last_name="Bell", investment_amount="100")

    data = admin_client.get("/api/admin/stats").json()["data"]

    assert data["total_investors"] == 1
    assert data["total_invested"] == "100"


def test_plain_admin_cannot_manage_admins(admin_client):
    assert admin_client.get("/api/superadmin/users").status_code == 403


def test_super_admin_manages_admins(client, db):
    create_admin_account(db, "root@example.com", "root-pass", role=AdminRole.super_admin)
    login(client, "root@example.com", "root-pass")

    created = client.post(
        "/api/superadmin/users",
        json={"first_name": "New", "last_name": "Admin", "email": "new-admin@example.com", "password": "secret1"},
    )
    assert created.status_code == 201
    admin_id = created.json()["data"]["id"]

    updated = client.put(f"/api/superadmin/users/{admin_id}", json={"is_active": False})
    assert updated.json()["data"]["is_active"] is False

    own = client.get("/api/superadmin/users").json()["data"]
    own_id = next(a["id"] for a in own if a["email"] == "root@example.com")
    assert client.delete(f"/api/superadmin/users/{own_id}").status_code == 400

    assert client.delete(f"/api/superadmin/users/{admin_id}").status_code == 200
    assert db.query(User).filter(User.email == "new-admin@example.com").first() is None

    logs = client.get("/api/superadmin/activity-logs").json()["data"]
    assert {"create", "update", "delete"} <= {entry["action"] for entry in logs}
