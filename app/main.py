"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

import app.models  # noqa: F401
from app.config import get_settings
from app.database import Base, SessionLocal, engine
from app.routers.accounts import router as accounts_router
from app.routers.bootstrap import router as bootstrap_router
from app.routers.history import router as history_router
from app.routers.invites import router as invites_router
from app.routers.jobs import router as jobs_router
from app.routers.members import router as members_router
from app.services.errors import StoreUnavailable
from app.services.scheduler import build_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Initialize the schema and run the job scheduler.

    Yields
    ------
    None
        Runs the application lifespan.
    """
    settings = get_settings()
    logging.getLogger("app").setLevel(settings.log_level.upper())
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(settings, SessionLocal)
        scheduler.start()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


app = FastAPI(title=get_settings().app_name, lifespan=lifespan)
app.include_router(bootstrap_router)
app.include_router(members_router)
app.include_router(accounts_router)
app.include_router(history_router)
app.include_router(invites_router)
app.include_router(jobs_router)


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(_: Request, exc: Exception) -> JSONResponse:
    """Report store connectivity failures as 503.

    Parameters
    ----------
    _ : Request
        Failed request.
    exc : Exception
        Store error.

    Returns
    -------
    JSONResponse
        Human-readable 503 payload.
    """
    logger.error("Store unavailable: %s", exc)
    error = StoreUnavailable()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.detail},
        headers=error.headers,
    )
