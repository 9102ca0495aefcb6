"""Invite ledger: issue, verify and consume guest access tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.invite import Invite
from app.models.mixins import as_utc, utcnow
from app.services.auth import Actor
from app.services.errors import InviteExhausted, InviteNotFound
from app.services.security import generate_plaintext_token, lookup_hash

logger = logging.getLogger(__name__)

REASON_NOT_FOUND = "Invite not found"
REASON_EXPIRED = "Invite has expired"
REASON_EXHAUSTED = "Invite has exhausted its uses"


@dataclass(frozen=True, slots=True)
class InviteVerification:
    """Result of checking an invite token.

    Attributes
    ----------
    valid : bool
        Whether the invite can be redeemed now.
    invite : Invite | None
        Matching invite row, when one exists.
    reason : str | None
        Human-readable reason when invalid.
    """

    valid: bool
    invite: Invite | None = None
    reason: str | None = None

    @property
    def invitee_email(self) -> str | None:
        """Informational invitee email."""
        return self.invite.invitee_email if self.invite is not None else None

    @property
    def label(self) -> str | None:
        """Informational invite label."""
        return self.invite.label if self.invite is not None else None


async def issue_invite(
    session: AsyncSession,
    *,
    issuer_id: UUID,
    label: str | None = None,
    invitee_email: str | None = None,
    expires_in_hours: float | None = None,
    max_uses: int | None = None,
) -> tuple[Invite, str]:
    """Create an invite.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    issuer_id : UUID
        Authenticated member issuing the invite.
    label : str | None, default=None
        Display label.
    invitee_email : str | None, default=None
        Informational email, shown as the guest display name.
    expires_in_hours : float | None, default=None
        Lifetime in hours; ``None`` never expires.
    max_uses : int | None, default=None
        Number of reservations allowed; ``None`` is unlimited.

    Returns
    -------
    tuple[Invite, str]
        Persisted invite and the raw token, returned only here.
    """
    plaintext = generate_plaintext_token("inv")
    now = utcnow()
    invite = Invite(
        token_lookup=lookup_hash(plaintext),
        label=label,
        invitee_email=invitee_email,
        created_by=issuer_id,
        created_at=now,
        expires_at=(
            now + timedelta(hours=expires_in_hours)
            if expires_in_hours is not None
            else None
        ),
        max_uses=max_uses,
        remaining_uses=max_uses,
    )
    session.add(invite)
    await session.flush()
    logger.info("Invite %s issued by %s", invite.id, issuer_id)
    return invite, plaintext


async def find_invite(session: AsyncSession, token: str) -> Invite | None:
    """Look up an invite by raw token."""
    result = await session.execute(
        select(Invite).where(Invite.token_lookup == lookup_hash(token))
    )
    return result.scalar_one_or_none()


def is_expired(invite: Invite, now: datetime | None = None) -> bool:
    """Whether an invite is past its expiry.

    Parameters
    ----------
    invite : Invite
        Invite row.
    now : datetime | None, default=None
        Reference time, defaults to now.

    Returns
    -------
    bool
        ``True`` once ``now >= expires_at``.
    """
    expires_at = as_utc(invite.expires_at)
    return expires_at is not None and (now or utcnow()) >= expires_at


async def verify_invite(session: AsyncSession, token: str) -> InviteVerification:
    """Check an invite without changing it.

    Unknown, expired and exhausted invites are reported, never raised.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    token : str
        Raw invite token.

    Returns
    -------
    InviteVerification
        Validity, matching invite and reason.
    """
    invite = await find_invite(session, token)
    if invite is None:
        return InviteVerification(valid=False, reason=REASON_NOT_FOUND)
    if is_expired(invite):
        return InviteVerification(valid=False, invite=invite, reason=REASON_EXPIRED)
    if invite.remaining_uses is not None and invite.remaining_uses <= 0:
        return InviteVerification(valid=False, invite=invite, reason=REASON_EXHAUSTED)
    return InviteVerification(valid=True, invite=invite)


async def consume_invite(session: AsyncSession, token: str) -> Invite:
    """Spend one use of an invite in the caller's transaction.

    The decrement is conditional on a use being left, so concurrent
    redemptions cannot overdraw a multi-use invite.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    token : str
        Raw invite token.

    Returns
    -------
    Invite
        Invite with its refreshed remaining uses.
    """
    invite = await find_invite(session, token)
    if invite is None:
        raise InviteNotFound()
    if invite.remaining_uses is None:
        return invite
    result = await session.execute(
        update(Invite)
        .where(Invite.id == invite.id, Invite.remaining_uses > 0)
        .values(remaining_uses=Invite.remaining_uses - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InviteExhausted()
    await session.refresh(invite)
    logger.info("Invite %s consumed, %s uses left", invite.id, invite.remaining_uses)
    return invite


def actor_for_invite(invite: Invite) -> Actor:
    """Build the guest identity bound to an invite.

    The identity is scoped to the invite itself, so it can never collide with
    a member or with another invite naming the same email.

    Parameters
    ----------
    invite : Invite
        Redeemed invite.

    Returns
    -------
    Actor
        Identity keyed by the invite id.
    """
    return Actor(
        id=f"invite:{invite.id}",
        display_name=invite.invitee_email or invite.label,
        email=invite.invitee_email,
    )
