"""Admin member routes."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.member import AccessToken, Member
from app.models.mixins import utcnow
from app.routers.dependencies import commit_session
from app.schemas.bootstrap import MemberCreateRequest, MemberResponse, MemberTokenResponse
from app.schemas.common import MessageResponse
from app.services.auth import require_admin
from app.services.security import issue_member_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


async def _ensure_email_available(session: AsyncSession, *, email: str) -> None:
    """Ensure no member uses an email yet.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    email : str
        Requested email.

    Returns
    -------
    None
        Raises on conflict.
    """
    result = await session.execute(select(Member.id).where(Member.email == email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Member email already exists",
        )


async def _get_member_or_404(session: AsyncSession, member_id: UUID) -> Member:
    member = await session.get(Member, member_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found",
        )
    return member


async def _issue_token(session: AsyncSession, member: Member) -> MemberTokenResponse:
    issued = issue_member_token()
    token = AccessToken(
        member_id=member.id,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(token)
    await session.flush()
    return MemberTokenResponse(
        token_id=token.id,
        token=issued.plaintext,
        member=MemberResponse.model_validate(member),
    )


@router.post("/members", response_model=MemberTokenResponse)
async def create_member(
    payload: MemberCreateRequest,
    admin: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> MemberTokenResponse:
    """Add a member and return its first token."""
    await _ensure_email_available(session, email=payload.email)
    member = Member(name=payload.name, email=payload.email, role=payload.role)
    session.add(member)
    await session.flush()
    response = await _issue_token(session, member)
    await commit_session(session)
    logger.info("Member %s created by %s", member.email, admin.email)
    return response


@router.get("/members", response_model=list[MemberResponse])
async def list_members(
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[MemberResponse]:
    """List members."""
    result = await session.execute(
        select(Member)
        .order_by(Member.created_at.desc(), Member.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [MemberResponse.model_validate(row) for row in result.scalars().all()]


@router.post("/members/{member_id}/tokens", response_model=MemberTokenResponse)
async def create_member_token(
    member_id: UUID,
    _: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> MemberTokenResponse:
    """Issue an additional token for a member."""
    member = await _get_member_or_404(session, member_id)
    response = await _issue_token(session, member)
    await commit_session(session)
    return response


@router.delete("/tokens/{token_id}", response_model=MessageResponse)
async def revoke_token(
    token_id: UUID,
    admin: Member = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Revoke a member token."""
    token = await session.get(AccessToken, token_id)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token not found",
        )
    token.revoked_at = utcnow()
    await commit_session(session)
    logger.info("Token %s revoked by %s", token_id, admin.email)
    return MessageResponse(message="Token revoked", timestamp=token.revoked_at)
