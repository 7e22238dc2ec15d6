import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from portal.config import settings
from portal.database import dispose_db, init_db
from portal.errors import PortalError
from portal.routers import admin, announcements, auth, fund, investor, public, reports, statements, superadmin
from portal.utils.response import (
    create_response,
    handle_exception,
    portal_error_handler,
    validation_error_handler,
)
from seed import run_seed

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# StaticFiles checks the directory when mounted
settings.STATEMENTS_DIR.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting investor portal backend...")
    init_db()
    settings.STATEMENTS_DIR.mkdir(parents=True, exist_ok=True)
    logger.info("Statements directory ready at %s", settings.STATEMENTS_DIR)

    if settings.SEED_ON_STARTUP:
        run_seed()

    yield

    dispose_db()
    logger.info("Investor portal backend stopped")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# CORS for the SPA; cookies need credentials and an explicit origin list
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    if not request.url.path.startswith("/api"):
        return await call_next(request)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s %s in %.0fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


app.add_exception_handler(PortalError, portal_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Add routes
app.include_router(auth.router)
app.include_router(investor.router)
app.include_router(admin.router)
app.include_router(statements.router)
app.include_router(announcements.router)
app.include_router(fund.router)
app.include_router(reports.router)
app.include_router(superadmin.router)
app.include_router(superadmin.system_router)
app.include_router(public.router)

# Serve generated statements
app.mount("/statements", StaticFiles(directory=settings.STATEMENTS_DIR), name="statements")


@app.get("/")
def home():
    try:
        return create_response(
            message="Investor Portal API running",
            data={"service": "portal-backend"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
