"""Invite routes: issuing and guest reservations."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.models.invite import Invite
from app.models.member import Member
from app.routers.dependencies import commit_session
from app.schemas.accounts import AccountResponse, ReservationResponse
from app.schemas.invites import (
    InviteAccountRequest,
    InviteCreateRequest,
    InviteCreateResponse,
    InviteVerificationResponse,
)
from app.services.accounts import get_account_or_404, list_accounts
from app.services.auth import require_member
from app.services.errors import InviteInvalid, InviteNotFound, NotOwner
from app.services.invites import (
    REASON_EXPIRED,
    actor_for_invite,
    consume_invite,
    find_invite,
    is_expired,
    issue_invite,
    verify_invite,
)
from app.services.reservations import release_account, reserve_account
from app.services.vault import open_password

router = APIRouter(prefix="/v1/invites", tags=["invites"])


async def _valid_invite(session: AsyncSession, token: str) -> Invite:
    """Return a redeemable invite or raise with the reason.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    token : str
        Raw invite token.

    Returns
    -------
    Invite
        Valid invite row.
    """
    verification = await verify_invite(session, token)
    if not verification.valid or verification.invite is None:
        raise InviteInvalid(verification.reason)
    return verification.invite


@router.post("", response_model=InviteCreateResponse)
async def create_invite(
    payload: InviteCreateRequest,
    member: Member = Depends(require_member),
    session: AsyncSession = Depends(get_session),
) -> InviteCreateResponse:
    """Issue an invite link token."""
    invite, token = await issue_invite(
        session,
        issuer_id=member.id,
        label=payload.label,
        invitee_email=payload.invitee_email,
        expires_in_hours=payload.expires_in_hours,
        max_uses=payload.max_uses,
    )
    await commit_session(session)
    return InviteCreateResponse(
        id=invite.id,
        token=token,
        expires_at=invite.expires_at,
        remaining_uses=invite.remaining_uses,
    )


@router.get("/{token}", response_model=InviteVerificationResponse)
async def check_invite(
    token: str,
    session: AsyncSession = Depends(get_session),
) -> InviteVerificationResponse:
    """Report whether an invite can be redeemed."""
    verification = await verify_invite(session, token)
    return InviteVerificationResponse(
        valid=verification.valid,
        invitee_email=verification.invitee_email,
        label=verification.label,
        reason=verification.reason,
    )


@router.get("/{token}/accounts", response_model=list[AccountResponse])
async def invite_accounts(
    token: str,
    session: AsyncSession = Depends(get_session),
) -> list[AccountResponse]:
    """List accounts for a guest holding a valid invite."""
    await _valid_invite(session, token)
    return [AccountResponse.model_validate(row) for row in await list_accounts(session)]


@router.post("/{token}/reserve", response_model=ReservationResponse)
async def invite_reserve(
    token: str,
    payload: InviteAccountRequest,
    session: AsyncSession = Depends(get_session),
) -> ReservationResponse:
    """Reserve an account as the invite's guest and spend one use."""
    invite = await _valid_invite(session, token)
    account, changed = await reserve_account(
        session,
        payload.account_id,
        actor_for_invite(invite),
        invite_id=invite.id,
    )
    if changed:
        await consume_invite(session, token)
    await commit_session(session)
    return ReservationResponse(
        account=AccountResponse.model_validate(account),
        password=open_password(account),
        changed=changed,
    )


@router.post("/{token}/release", response_model=AccountResponse)
async def invite_release(
    token: str,
    payload: InviteAccountRequest,
    session: AsyncSession = Depends(get_session),
) -> AccountResponse:
    """Release the account held by the invite's guest.

    Allowed while the invite is unexpired, even after its uses ran out.
    """
    invite = await find_invite(session, token)
    if invite is None:
        raise InviteNotFound()
    if is_expired(invite):
        raise InviteInvalid(REASON_EXPIRED)
    actor = actor_for_invite(invite)
    account = await get_account_or_404(session, payload.account_id)
    if account.owner_id != actor.id:
        raise NotOwner()
    account = await release_account(
        session, account.id, actor, strict=True, invite_id=invite.id
    )
    await commit_session(session)
    return AccountResponse.model_validate(account)
