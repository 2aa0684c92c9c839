"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Lifespan manager — logging, table creation, default admin bootstrap,
     the periodic card-ready sweep, and cleanup
  2. CORS middleware — allows frontend origins to make cross-origin requests
  3. Exception handlers — maps domain errors to HTTP responses
  4. Router registration — mounts all API endpoint groups

Running locally:
    uvicorn netbank.main:app --reload

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from netbank.config import settings
from netbank.database import engine, AsyncSessionLocal, Base
from netbank.exceptions import register_exception_handlers
from netbank.logging_config import setup_logging
from netbank.routers import (
    account_holders,
    accounts,
    admin,
    auth,
    deposits,
    service_requests,
    statements,
    transactions,
    transfers,
)
from netbank.services import auth_service, service_request_service

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory() -> None:
    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def _card_sweep_loop(interval_seconds: int) -> None:
    """Promote approved debit cards whose ETA has passed, forever."""
    while True:
        try:
            await service_request_service.sweep_ready_cards(AsyncSessionLocal)
        except SQLAlchemyError:
            logger.exception("Card-ready sweep failed")
        await asyncio.sleep(interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager (replaces deprecated @app.on_event).

    Startup:
      Creates all database tables if they don't exist. This is a convenience
      for development — in production, you'd use Alembic migrations exclusively
      so you have version-controlled, reversible schema changes.
      Then creates the default administrator when none exists, and starts
      the card-ready sweep unless its interval is 0.

    Shutdown:
      Cancels the sweep and disposes of the database engine, closing all
      connections cleanly.
    """
    # --- Startup ---
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    _ensure_sqlite_directory()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await auth_service.bootstrap_default_admin(session)
        await session.commit()

    sweep_task = None
    if settings.CARD_READY_SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(
            _card_sweep_loop(settings.CARD_READY_SWEEP_INTERVAL_SECONDS)
        )
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)

    yield

    # --- Shutdown ---
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task
    await engine.dispose()


# Create the FastAPI application instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Internet banking REST API: accounts, transfers, deposits, "
                "service requests and back-office administration",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

# CORS: Allow specified frontend origins to make requests.
# In production, lock this down to your actual frontend domain(s).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(account_holders.router, prefix="/account-holders", tags=["Account Holders"])
app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(transactions.router, prefix="/accounts", tags=["Transactions"])
app.include_router(statements.router, prefix="/accounts", tags=["Statements"])
app.include_router(transfers.router, prefix="/transfers", tags=["Transfers"])
app.include_router(deposits.router, prefix="/deposits", tags=["Deposits"])
app.include_router(service_requests.router, prefix="/service-requests", tags=["Service Requests"])
app.include_router(
    service_requests.notifications_router, prefix="/notifications", tags=["Notifications"]
)
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for deployment probes (Kubernetes, Docker, etc.).

    Returns a simple JSON response indicating the service is running.
    Load balancers and orchestrators use this to determine if the
    container should receive traffic.
    """
    return {"status": "ok", "version": settings.APP_VERSION}
