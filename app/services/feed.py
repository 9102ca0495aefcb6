"""Live account list subscriptions."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.schemas.accounts import AccountResponse
from app.services.accounts import list_accounts

logger = logging.getLogger(__name__)

Snapshot = list[dict[str, Any]]


def snapshot_of(accounts: list[Account]) -> Snapshot:
    """Serialize an ordered account list for subscribers.

    Parameters
    ----------
    accounts : list[Account]
        Accounts ordered by username.

    Returns
    -------
    Snapshot
        JSON-ready account payloads.
    """
    return [
        AccountResponse.model_validate(account).model_dump(mode="json")
        for account in accounts
    ]


class AccountFeed:
    """In-process fan-out of account list snapshots.

    Parameters
    ----------
    buffer_size : int, default=8
        Snapshots buffered per subscriber before new ones are dropped.
    """

    def __init__(self, buffer_size: int = 8) -> None:
        self.buffer_size = buffer_size
        self._subscribers: set[MemoryObjectSendStream[Snapshot]] = set()

    @property
    def subscriber_count(self) -> int:
        """Number of open subscriptions."""
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[MemoryObjectReceiveStream[Snapshot]]:
        """Open a subscription.

        Yields
        ------
        MemoryObjectReceiveStream[Snapshot]
            Stream receiving every published snapshot.
        """
        send, receive = anyio.create_memory_object_stream(self.buffer_size)
        self._subscribers.add(send)
        try:
            yield receive
        finally:
            self._subscribers.discard(send)
            send.close()
            receive.close()

    def publish(self, snapshot: Snapshot) -> None:
        """Deliver a snapshot to every subscriber without waiting.

        Parameters
        ----------
        snapshot : Snapshot
            Full ordered account list.
        """
        for send in list(self._subscribers):
            try:
                send.send_nowait(snapshot)
            except anyio.WouldBlock:
                logger.warning("Dropped account snapshot for a slow subscriber")
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._subscribers.discard(send)

    async def publish_current(self, session: AsyncSession) -> None:
        """Publish the stored account list if anyone is listening.

        Parameters
        ----------
        session : AsyncSession
            Session used to read the committed state.
        """
        if not self._subscribers:
            return
        self.publish(snapshot_of(await list_accounts(session)))


account_feed = AccountFeed()
