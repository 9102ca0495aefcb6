"""Reservation engine: reserve and release with conflict detection."""

from __future__ import annotations

import logging
import random
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.account import STATUS_BUSY, STATUS_FREE, Account
from app.models.history import ACTION_CHECKIN, ACTION_CHECKOUT
from app.models.mixins import utcnow
from app.services.accounts import get_account_or_404, write_if_unchanged
from app.services.auth import Actor
from app.services.errors import (
    AccountUnavailable,
    AlreadyHoldingReservation,
    NotOwner,
    StaleAccountState,
)
from app.services.history import append_entry

logger = logging.getLogger(__name__)


async def held_account(session: AsyncSession, actor: Actor) -> Account | None:
    """Return the account currently reserved by an actor.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    actor : Actor
        Acting identity.

    Returns
    -------
    Account | None
        Busy account owned by the actor, if any.
    """
    result = await session.execute(
        select(Account).where(
            Account.owner_id == actor.id,
            Account.status == STATUS_BUSY,
        )
    )
    return result.scalars().first()


async def reserve_account(
    session: AsyncSession,
    account_id: UUID,
    actor: Actor,
    *,
    invite_id: UUID | None = None,
) -> tuple[Account, bool]:
    """Reserve an account for an actor.

    The status write only commits against the version that was read, so of
    two concurrent reservations exactly one wins.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Target account.
    actor : Actor
        Acting identity.
    invite_id : UUID | None, default=None
        Invite used by a guest reservation.

    Returns
    -------
    tuple[Account, bool]
        Reserved account and whether this call changed it. Reserving an
        account the actor already holds succeeds without a change.
    """
    current = await held_account(session, actor)
    if current is not None:
        if current.id == account_id:
            return current, False
        raise AlreadyHoldingReservation()

    account = await get_account_or_404(session, account_id)
    if account.is_busy and account.owner_id is not None:
        logger.warning(
            "Reservation of %s by %s refused: held by %s",
            account.username,
            actor.id,
            account.owner_id,
        )
        raise AccountUnavailable()

    now = utcnow()
    try:
        written = await write_if_unchanged(
            session,
            account,
            {
                "status": STATUS_BUSY,
                "owner": actor.label,
                "owner_id": actor.id,
                "last_used_at": now,
            },
        )
    except IntegrityError as exc:
        await session.rollback()
        raise AlreadyHoldingReservation() from exc
    if not written:
        logger.warning("Reservation of %s by %s lost a race", account.username, actor.id)
        raise AccountUnavailable()

    await append_entry(
        session,
        account_id=account.id,
        action=ACTION_CHECKOUT,
        actor=actor,
        timestamp=now,
        invite_id=invite_id,
    )
    logger.info("Account %s reserved by %s", account.username, actor.id)
    return account, True


async def reserve_any_free(session: AsyncSession, actor: Actor) -> Account:
    """Reserve a random free account, moving past accounts taken meanwhile.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    actor : Actor
        Acting identity.

    Returns
    -------
    Account
        Newly reserved account.
    """
    current = await held_account(session, actor)
    if current is not None:
        raise AlreadyHoldingReservation()

    result = await session.execute(
        select(Account.id).where(Account.status == STATUS_FREE)
    )
    candidates = list(result.scalars().all())
    random.shuffle(candidates)
    for candidate in candidates:
        try:
            account, _ = await reserve_account(session, candidate, actor)
        except AccountUnavailable:
            continue
        return account
    raise AccountUnavailable("No free accounts available")


async def release_account(
    session: AsyncSession,
    account_id: UUID,
    actor: Actor,
    *,
    strict: bool | None = None,
    invite_id: UUID | None = None,
) -> Account:
    """Release an account.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Target account.
    actor : Actor
        Acting identity.
    strict : bool | None, default=None
        Require the actor to hold the account (admins exempt). Defaults to
        the ``strict_owner_release`` setting.
    invite_id : UUID | None, default=None
        Invite used by a guest release.

    Returns
    -------
    Account
        Freed account.
    """
    if strict is None:
        strict = get_settings().strict_owner_release
    account = await get_account_or_404(session, account_id)
    if (
        strict
        and account.is_busy
        and account.owner_id != actor.id
        and not actor.is_admin
    ):
        logger.warning(
            "Release of %s by %s refused: held by %s",
            account.username,
            actor.id,
            account.owner_id,
        )
        raise NotOwner()

    now = utcnow()
    written = await write_if_unchanged(
        session,
        account,
        {
            "status": STATUS_FREE,
            "owner": None,
            "owner_id": None,
            "last_returned_at": now,
        },
    )
    if not written:
        raise StaleAccountState()

    await append_entry(
        session,
        account_id=account.id,
        action=ACTION_CHECKIN,
        actor=actor,
        timestamp=now,
        invite_id=invite_id,
    )
    logger.info("Account %s released by %s", account.username, actor.id)
    return account
