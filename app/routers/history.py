"""History routes."""

from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.member import Member
from app.routers.dependencies import current_actor
from app.schemas.history import HistoryEntryResponse, UsageSummaryResponse
from app.services.accounts import list_accounts
from app.services.auth import Actor, require_admin
from app.services.history import recent_global, usage_summary

router = APIRouter(prefix="/v1/history", tags=["history"])


@router.get("", response_model=list[HistoryEntryResponse])
async def list_recent_history(
    _: Actor = Depends(current_actor),
    session: AsyncSession = Depends(get_session),
    limit: int | None = Query(default=None, ge=1, le=500),
) -> list[HistoryEntryResponse]:
    """Return recent events across all accounts, newest first."""
    entries = await recent_global(
        session, limit or get_settings().history_default_limit
    )
    return [HistoryEntryResponse.model_validate(row) for row in entries]


@router.get("/insights", response_model=UsageSummaryResponse)
async def usage_insights(
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=150, ge=1, le=1000),
) -> UsageSummaryResponse:
    """Summarize pool occupancy and recent reservation activity."""
    accounts = await list_accounts(session)
    entries = await recent_global(session, limit)
    summary = usage_summary(
        accounts, entries, tz=ZoneInfo(get_settings().reset_timezone)
    )
    return UsageSummaryResponse.model_validate(summary)
