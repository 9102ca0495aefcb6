"""Reconciliation and reset trigger routes."""

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.member import Member
from app.routers.dependencies import commit_session, get_status_transport
from app.schemas.jobs import ReconcileResponse, ResetResponse
from app.services.auth import require_admin, require_member
from app.services.jobs import reconcile_external_status, reset_busy_accounts

router = APIRouter(prefix="/v1", tags=["jobs"])


@router.get("/check", response_model=ReconcileResponse)
async def check_external_status(
    _: Member = Depends(require_member),
    session: AsyncSession = Depends(get_session),
    transport: httpx.AsyncBaseTransport | None = Depends(get_status_transport),
) -> ReconcileResponse:
    """Record which accounts the external service reports as busy."""
    result = await reconcile_external_status(session, get_settings(), transport)
    await commit_session(session)
    return ReconcileResponse.model_validate(result)


@router.post("/reset", response_model=ResetResponse)
async def reset_accounts(
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> ResetResponse:
    """Free every busy account now."""
    result = await reset_busy_accounts(session)
    await commit_session(session)
    return ResetResponse.model_validate(result)
