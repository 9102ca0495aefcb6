"""Bootstrap routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_session
from app.models.member import ROLE_ADMIN, AccessToken, Member
from app.schemas.bootstrap import BootstrapRequest, MemberResponse, MemberTokenResponse
from app.services.auth import bootstrap_allowed
from app.services.security import issue_member_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["bootstrap"])


@router.post("/bootstrap", response_model=MemberTokenResponse)
async def bootstrap(
    payload: BootstrapRequest,
    session: AsyncSession = Depends(get_session),
) -> MemberTokenResponse:
    """Create the first admin member and its token.

    Parameters
    ----------
    payload : BootstrapRequest
        Bootstrap request.
    session : AsyncSession
        Active database session.

    Returns
    -------
    MemberTokenResponse
        Created admin member and token.
    """
    if not get_settings().bootstrap_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Bootstrap disabled",
        )
    if not await bootstrap_allowed(session):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Bootstrap already completed",
        )

    member = Member(name=payload.name, email=payload.email, role=ROLE_ADMIN)
    session.add(member)
    await session.flush()

    issued = issue_member_token()
    token = AccessToken(
        member_id=member.id,
        token_hash=issued.token_hash,
        token_lookup=issued.token_lookup,
    )
    session.add(token)
    await session.flush()
    await session.commit()
    logger.info("Bootstrapped admin member %s", member.email)
    return MemberTokenResponse(
        token_id=token.id,
        token=issued.plaintext,
        member=MemberResponse.model_validate(member),
    )
