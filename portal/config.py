import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi.security import APIKeyCookie

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    PROJECT_NAME = "Investor Portal Backend"

    DATABASE_URL = os.getenv("DATABASE_URL")
    FRONTEND_URL = os.getenv("FRONTEND_URL")

    JWT_SECRET = os.getenv("JWT_SECRET")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")

    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "portal_session")
    SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", 7))
    COOKIE_SECURE = _env_flag("COOKIE_SECURE", "false")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax").lower()

    OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", 10))
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", 6))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    STATEMENTS_DIR = Path(os.getenv("STATEMENTS_DIR", str(BASE_DIR / "statements")))

    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    FROM_EMAIL = os.getenv("FROM_EMAIL", "no-reply@godmancapital.com")
    LEADS_NOTIFY_EMAIL = os.getenv("LEADS_NOTIFY_EMAIL")

    SEED_ON_STARTUP = _env_flag("SEED_ON_STARTUP", "true")
    SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@godmancapital.com")
    SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "password123")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    cookie_scheme = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)
    cors_origins = [
        origin.strip()
        for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]
    if FRONTEND_URL and FRONTEND_URL not in cors_origins:
        cors_origins.append(FRONTEND_URL)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS)

    def ensure_required(self) -> None:
        missing = [
            name
            for name in ("DATABASE_URL", "FRONTEND_URL", "JWT_SECRET")
            if not getattr(self, name)
        ]
        if missing:
            raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


settings = Settings()
