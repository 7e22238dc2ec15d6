import zipfile
from io import BytesIO

import pytest
from fastapi.testclient import TestClient

from conftest import login
from portal import main
from portal.models.admin_user import AdminRole
from portal.models.investor import Portfolio
from portal.models.transaction import Transaction
from portal.services import account_service
from portal.services.account_service import create_admin_account, create_investor_account


@pytest.fixture()
def admin_client(client, db):
    create_admin_account(db, "ops@example.com", "ops-pass", role=AdminRole.admin)
    login(client, "ops@example.com", "ops-pass")
    return client


@pytest.fixture()
def root_client(client, db):
    create_admin_account(db, "root@example.com", "root-pass", role=AdminRole.super_admin)
    login(client, "root@example.com", "root-pass")
    return client


def _investor_browser(db, email="ira@example.com", password="ira-pass-1", **kwargs):
    investor = create_investor_account(db, email=email, password=password, first_name="Ira", last_name="Shah", **kwargs)
    browser = TestClient(main.app)
    login(browser, email, password)
    return investor, browser


def test_nav_history_crud(admin_client):
    older = admin_client.post("/api/admin/nav", json={"date": "2025-03-31T00:00:00", "nav": "100.5", "aum": "1,000"})
    newer = admin_client.post("/api/admin/nav", json={"date": "2025-06-30T00:00:00", "nav": "104.2", "aum": "1500"})
    assert older.status_code == 201
    assert older.json()["data"]["aum"] == "1000"

    listed = admin_client.get("/api/admin/nav").json()["data"]
    assert [entry["nav"] for entry in listed] == ["104.2", "100.5"]

    nav_id = newer.json()["data"]["id"]
    updated = admin_client.put(f"/api/admin/nav/{nav_id}", json={"aum": "1600"})
    assert updated.json()["data"]["aum"] == "1600"
    assert updated.json()["data"]["nav"] == "104.2"

    assert admin_client.put("/api/admin/nav/999", json={"nav": "1"}).status_code == 404
    assert admin_client.post("/api/admin/nav", json={"date": "2025-06-30T00:00:00", "nav": "abc", "aum": "1"}).status_code == 400


def test_returns_history_crud(admin_client):
    admin_client.post(
        "/api/admin/returns",
        json={"period": "Q1 2025", "year": 2025, "quarter": 1, "gross_return": "3.1", "net_return": "2.6"},
    )
    created = admin_client.post(
        "/api/admin/returns",
        json={"period": "Q2 2025", "year": 2025, "quarter": 2, "gross_return": "3.4", "net_return": "2.9", "benchmark": "2"},
    )
    assert created.status_code == 201

    listed = admin_client.get("/api/admin/returns").json()["data"]
    assert [entry["period"] for entry in listed] == ["Q2 2025", "Q1 2025"]

    returns_id = created.json()["data"]["id"]
    updated = admin_client.put(f"/api/admin/returns/{returns_id}", json={"net_return": "3.0"}).json()["data"]
    assert updated["net_return"] == "3.0"
    assert updated["benchmark"] == "2"
    assert admin_client.put("/api/admin/returns/999", json={"net_return": "1"}).status_code == 404


def test_aum_report_uses_latest_nav(admin_client, db):
    create_investor_account(db, email="a@example.com", password="a-pass-1", first_name="Ana", last_name="Bell")
    admin_client.post("/api/admin/nav", json={"date": "2025-01-31T00:00:00", "nav": "100", "aum": "900"})
    admin_client.post("/api/admin/nav", json={"date": "2025-02-28T00:00:00", "nav": "101", "aum": "950"})

    data = admin_client.get("/api/admin/reports/aum").json()["data"]

    assert data["total_aum"] == "950"
    assert data["investor_count"] == 1
    assert len(data["history"]) == 2


def test_inflows_report_splits_by_type(admin_client, db):
    investor = create_investor_account(db, email="f@example.com", password="f-pass-1", first_name="Fay", last_name="Lim")
    portfolio = db.query(Portfolio).filter(Portfolio.investor_id == investor.id).first()
    for kind, amount in (("investment", "1000"), ("contribution", "250.50"), ("redemption", "300"), ("withdrawal", "20")):
        db.add(Transaction(investor_id=investor.id, portfolio_id=portfolio.id, type=kind, amount=amount))
    db.commit()

    data = admin_client.get("/api/admin/reports/inflows").json()["data"]

    assert data["total_inflows"] == "1250.50"
    assert data["total_outflows"] == "320"
    assert len(data["recent_inflows"]) == 2
    assert len(data["recent_outflows"]) == 2


def test_portfolio_update_feeds_allocation_report(admin_client, db):
    first = create_investor_account(db, email="p1@example.com", password="p-pass-1", first_name="Pia", last_name="One")
    second = create_investor_account(db, email="p2@example.com", password="p-pass-2", first_name="Pia", last_name="Two")
    admin_client.put(f"/api/admin/investors/{first.id}/portfolio", json={"private_credit_allocation": "60", "cash_equivalents": "15"})
    response = admin_client.put(
        f"/api/admin/investors/{second.id}/portfolio",
        json={"private_credit_allocation": "40.5", "aif_exposure": "25"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["aif_exposure"] == "25"

    data = admin_client.get("/api/admin/reports/allocations").json()["data"]

    assert data == {"private_credit": "100.5", "aif_exposure": "25", "cash_equivalents": "15"}


def test_investor_segments_by_tier(admin_client, db):
    create_investor_account(db, email="s1@example.com", password="s-pass-1", first_name="Sa", last_name="Small", investment_amount="500000")
    create_investor_account(
        db,
        email="s2@example.com",
        password="s-pass-2",
        first_name="Ma",
        last_name="Medium",
        investment_amount="2000000",
        investor_type="corporate",
    )
    create_investor_account(db, email="s3@example.com", password="s-pass-3", first_name="Vi", last_name="Vip", investment_amount="25000000")

    data = admin_client.get("/api/admin/reports/investor-segments").json()["data"]

    assert data["by_investment_tier"] == {"small": 1, "medium": 1, "large": 0, "vip": 1}
    assert data["by_type"] == {"individual": 2, "corporate": 1}
    assert data["by_kyc_status"] == {"pending": 3}


def test_report_export_returns_csv(admin_client, db):
    create_investor_account(db, email="c@example.com", password="c-pass-1", first_name="Cal", last_name="Vin")

    response = admin_client.post("/api/admin/reports/export", json={"report_type": "segments", "format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "filename=report_segments_" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "Investor,Type,KYC Status,Risk Profile"
    assert lines[1].startswith("Cal Vin,individual,pending")


def test_report_export_rejects_other_formats(admin_client):
    response = admin_client.post("/api/admin/reports/export", json={"report_type": "aum", "format": "pdf"})

    assert response.status_code == 400
    assert response.json()["message"] == "Only CSV format is currently supported for direct download."


def test_bulk_upload_then_send_credentials(admin_client, db):
    response = admin_client.post(
        "/api/admin/investors/bulk-upload",
        json={
            "investors": [
                {"first_name": "Bina", "last_name": "Rao", "email": "Bina@Example.com", "investment_amount": "7,50,000"},
                {"first_name": "Kiran", "last_name": "Das", "email": "kiran@example.com"},
            ]
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["created"] == 2
    bina = data["investors"][0]
    assert bina["email"] == "bina@example.com"
    assert bina["user_id"] is None
    assert bina["kyc_status"] == "pending"
    assert bina["portfolio"]["total_invested"] == "750000"
    assert bina["portfolio"]["current_value"] == "750000"

    issued = admin_client.post(f"/api/admin/investors/{bina['id']}/send-credentials")
    assert issued.status_code == 200
    credentials = issued.json()["data"]
    assert credentials["email"] == "bina@example.com"
    assert credentials["emailed"] is False

    investor_browser = TestClient(main.app)
    verified = login(investor_browser, "bina@example.com", credentials["temp_password"]).json()["data"]
    assert verified["role"] == "investor"
    assert verified["investor_id"] == bina["id"]


def test_send_credentials_twice_replaces_password(admin_client, monkeypatch):
    passwords = iter(["GC111111@2025", "GC222222@2025"])
    monkeypatch.setattr(account_service, "generate_temp_password", lambda: next(passwords))
    investor_id = admin_client.post(
        "/api/admin/investors/bulk-upload",
        json={"investors": [{"first_name": "Ravi", "last_name": "Iyer", "email": "ravi@example.com"}]},
    ).json()["data"]["investors"][0]["id"]

    first = admin_client.post(f"/api/admin/investors/{investor_id}/send-credentials").json()["data"]["temp_password"]
    second = admin_client.post(f"/api/admin/investors/{investor_id}/send-credentials").json()["data"]["temp_password"]

    assert (first, second) == ("GC111111@2025", "GC222222@2025")
    stale = TestClient(main.app).post("/api/login", json={"email": "ravi@example.com", "password": first})
    assert stale.status_code == 401
    login(TestClient(main.app), "ravi@example.com", second)


def test_bulk_upload_skips_known_emails(admin_client, db):
    create_investor_account(db, email="taken@example.com", password="t-pass-1", first_name="Tak", last_name="En")

    response = admin_client.post(
        "/api/admin/investors/bulk-upload",
        json={"investors": [{"first_name": "Tak", "last_name": "En", "email": "TAKEN@example.com"}]},
    )

    data = response.json()["data"]
    assert data["created"] == 0
    assert data["skipped"] == [{"email": "taken@example.com", "reason": "Email already registered"}]


def test_bulk_upload_requires_rows(admin_client):
    assert admin_client.post("/api/admin/investors/bulk-upload", json={"investors": []}).status_code == 400


def test_statement_generation_notifies_investor(admin_client, db):
    investor, browser = _investor_browser(db)
    admin_client.post(
        "/api/admin/statements/generate",
        json={"investor_id": investor.id, "type": "monthly", "period": "March", "year": 2025, "month": 3},
    )

    notifications = browser.get("/api/investor/notifications").json()["data"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "statement"
    assert notifications[0]["is_read"] is False

    marked = browser.put(f"/api/investor/notifications/{notifications[0]['id']}/read")
    assert marked.json()["data"]["is_read"] is True
    assert browser.put("/api/investor/notifications/999/read").status_code == 404


def test_investor_without_allocations_gets_empty_list(db, client):
    _, browser = _investor_browser(db)

    response = browser.get("/api/investor/allocations")

    assert response.status_code == 200
    assert response.json()["data"] == []


def test_admin_notification_counts(admin_client, db):
    _, browser = _investor_browser(db)
    browser.post(
        "/api/investor/requests",
        json={"type": "general", "subject": "Question", "description": "When is the next distribution?"},
    )
    admin_client.post(
        "/api/admin/announcements",
        json={"title": "Fund update", "content": "The fund has crossed its first deployment milestone."},
    )

    data = admin_client.get("/api/admin/notifications/counts").json()["data"]

    assert data == {"tickets": 1, "announcements": 1}


def test_filtered_statement_download_zips_matches(admin_client, db):
    investor = create_investor_account(db, email="z@example.com", password="z-pass-1", first_name="Zoe", last_name="Pal")
    for body in (
        {"type": "monthly", "period": "January", "year": 2025, "month": 1},
        {"type": "monthly", "period": "February", "year": 2025, "month": 2},
        {"type": "quarterly", "period": "Q1", "year": 2025, "quarter": 1},
    ):
        assert admin_client.post("/api/admin/statements/generate", json={"investor_id": investor.id, **body}).status_code == 201

    response = admin_client.post(
        "/api/admin/statements/download-filtered",
        json={"type": "monthly", "period": "JANUARY", "year": 2025},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert "statements_monthly_JANUARY_2025.zip" in response.headers["content-disposition"]
    names = zipfile.ZipFile(BytesIO(response.content)).namelist()
    assert names == [f"monthly_January_2025_{investor.id}.pdf"]

    everything = admin_client.post("/api/admin/statements/download-filtered", json={"investor_id": investor.id})
    assert len(zipfile.ZipFile(BytesIO(everything.content)).namelist()) == 3


def test_filtered_statement_download_without_matches(admin_client):
    response = admin_client.post("/api/admin/statements/download-filtered", json={"year": 1999})

    assert response.status_code == 404
    assert response.json()["message"] == "No statements found matching the selected filters"


def test_system_settings_upsert_and_map(root_client, db):
    created = root_client.put(
        "/api/superadmin/system-settings",
        json={"key": "maintenance_mode", "value": False, "category": "platform", "description": "Read-only portal"},
    )
    assert created.status_code == 200
    assert created.json()["data"]["value"] == "false"

    updated = root_client.put("/api/superadmin/system-settings/maintenance_mode", json={"value": True}).json()["data"]
    assert updated["value"] == "true"
    assert updated["category"] == "platform"
    assert updated["description"] == "Read-only portal"
    assert updated["updated_by"] is not None

    root_client.put("/api/superadmin/system-settings/min_investment", json={"value": 1000000})
    listed = root_client.get("/api/superadmin/system-settings").json()["data"]
    assert [(s["category"], s["key"]) for s in listed] == [("general", "min_investment"), ("platform", "maintenance_mode")]

    _, browser = _investor_browser(db)
    assert browser.get("/api/system/settings").json()["data"] == {
        "min_investment": "1000000",
        "maintenance_mode": "true",
    }


def test_system_settings_need_super_admin(admin_client):
    assert admin_client.get("/api/superadmin/system-settings").status_code == 403
    assert admin_client.put("/api/superadmin/system-settings", json={"key": "k", "value": "v"}).status_code == 403


def test_system_settings_map_needs_login(client):
    assert client.get("/api/system/settings").status_code == 401
