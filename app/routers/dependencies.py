"""Shared router helpers."""

import logging

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member
from app.services.auth import Actor, actor_for_member, require_member
from app.services.feed import account_feed

logger = logging.getLogger(__name__)


async def commit_session(session: AsyncSession) -> None:
    """Commit the current transaction and notify live subscribers.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    None
        Commits current transaction.
    """
    await session.commit()
    try:
        await account_feed.publish_current(session)
    except Exception:
        logger.exception("Live account feed update failed")


async def current_actor(member: Member = Depends(require_member)) -> Actor:
    """Resolve the acting identity of the authenticated member.

    Parameters
    ----------
    member : Member
        Authenticated member row.

    Returns
    -------
    Actor
        Identity used by the ledger.
    """
    return actor_for_member(member)


async def get_status_transport() -> httpx.AsyncBaseTransport | None:
    """Return the transport for external status calls.

    Returns
    -------
    httpx.AsyncBaseTransport | None
        ``None`` selects the default network transport.
    """
    return None
