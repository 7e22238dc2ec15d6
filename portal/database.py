import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from portal.config import settings

logger = logging.getLogger(__name__)

settings.ensure_required()


def build_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # TestClient and the threadpool share connections across threads
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def init_db(bind: Engine = engine) -> None:
    # Import models so every table is registered on Base.metadata
    from portal.models import (  # noqa: F401
        activity_log,
        admin_user,
        allocation,
        announcement,
        fund,
        investor,
        lead,
        notification,
        otp,
        statement,
        support_request,
        system_setting,
        transaction,
        user,
    )

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ready on %s", bind.url.render_as_string(hide_password=True))


def dispose_db(bind: Engine = engine) -> None:
    bind.dispose()
    logger.info("Database connections released")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
