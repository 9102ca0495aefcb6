"""Server-side schedule for the daily reset and status reconciliation."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.services.errors import StatusApiNotConfigured, StatusApiUnavailable
from app.services.feed import account_feed
from app.services.jobs import (
    ReconcileResult,
    ResetResult,
    reconcile_external_status,
    reset_busy_accounts,
)

logger = logging.getLogger(__name__)

DAILY_RESET_JOB_ID = "daily_reset"
RECONCILE_JOB_ID = "reconcile_external_status"


async def run_daily_reset(
    session_factory: async_sessionmaker[AsyncSession],
) -> ResetResult:
    """Run the reset in its own session and commit it.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for a fresh session.

    Returns
    -------
    ResetResult
        Reset outcome.
    """
    async with session_factory() as session:
        result = await reset_busy_accounts(session)
        await session.commit()
        await account_feed.publish_current(session)
    return result


async def run_reconciliation(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings
) -> ReconcileResult | None:
    """Run a best-effort external-status check.

    Upstream failures are logged and the run is skipped.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for a fresh session.
    settings : Settings
        Application settings.

    Returns
    -------
    ReconcileResult | None
        Outcome, or ``None`` when the upstream call failed.
    """
    async with session_factory() as session:
        try:
            result = await reconcile_external_status(session, settings)
        except (StatusApiNotConfigured, StatusApiUnavailable) as exc:
            logger.warning("Scheduled reconciliation skipped: %s", exc.detail)
            return None
        await session.commit()
        await account_feed.publish_current(session)
    return result


def build_scheduler(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> AsyncIOScheduler:
    """Create the job scheduler without starting it.

    Parameters
    ----------
    settings : Settings
        Application settings.
    session_factory : async_sessionmaker[AsyncSession]
        Factory used by each job run.

    Returns
    -------
    AsyncIOScheduler
        Scheduler with the daily reset and, when enabled, reconciliation.
    """
    scheduler = AsyncIOScheduler(timezone=settings.reset_timezone)
    scheduler.add_job(
        run_daily_reset,
        trigger=CronTrigger(
            hour=settings.reset_hour, minute=0, timezone=settings.reset_timezone
        ),
        id=DAILY_RESET_JOB_ID,
        args=[session_factory],
        coalesce=True,
        max_instances=1,
        misfire_grace_time=3600,
        replace_existing=True,
    )
    logger.info(
        "Scheduled daily reset at %02d:00 %s",
        settings.reset_hour,
        settings.reset_timezone,
    )
    if settings.reconcile_interval_minutes:
        scheduler.add_job(
            run_reconciliation,
            trigger=IntervalTrigger(minutes=settings.reconcile_interval_minutes),
            id=RECONCILE_JOB_ID,
            args=[session_factory, settings],
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )
        logger.info(
            "Scheduled external status check every %d minutes",
            settings.reconcile_interval_minutes,
        )
    return scheduler
