import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"
TEST_STATEMENTS_DIR = Path(tempfile.mkdtemp(prefix="portal-statements-"))

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ["STATEMENTS_DIR"] = str(TEST_STATEMENTS_DIR)
for smtp_var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS"):
    os.environ.pop(smtp_var, None)

import portal.main as main  # noqa: E402  (import after env vars are set)
from portal.database import Base, SessionLocal, engine, init_db  # noqa: E402
from portal.models.otp import Otp  # noqa: E402


@pytest.fixture(autouse=True)
def reset_schema():
    """Every test starts from empty tables."""
    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(monkeypatch):
    """Provide a TestClient with startup seeding patched out for isolation."""
    monkeypatch.setattr(main, "run_seed", lambda *args, **kwargs: None)

    with TestClient(main.app) as test_client:
        yield test_client


def latest_code(user_id: int) -> str:
    session = SessionLocal()
    try:
        record = (
            session.query(Otp)
            .filter(Otp.user_id == user_id, Otp.is_superseded == False)
            .order_by(Otp.id.desc())
            .first()
        )
        return record.code
    finally:
        session.close()


def login(client: TestClient, email: str, password: str):
    """Run password + OTP login on the client; returns the verify response."""
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.json()
    user_id = response.json()["data"]["temp_user_id"]
    return client.post(
        "/api/verify-otp",
        json={"temp_user_id": user_id, "code": latest_code(user_id)},
    )
