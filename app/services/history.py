"""Reservation history: append and read projections."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.history import ACTION_CHECKOUT, HistoryEntry
from app.models.mixins import as_utc, utcnow
from app.services.auth import Actor

logger = logging.getLogger(__name__)


async def append_entry(
    session: AsyncSession,
    *,
    account_id: UUID,
    action: str,
    actor: Actor,
    timestamp: datetime | None = None,
    invite_id: UUID | None = None,
) -> HistoryEntry:
    """Persist one history entry in the caller's transaction.

    Both the global and the per-account views read this single row.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Account that changed state.
    action : str
        ``checkout`` or ``checkin``.
    actor : Actor
        Identity that caused the transition.
    timestamp : datetime | None, default=None
        Event time, defaults to now.
    invite_id : UUID | None, default=None
        Invite used for guest actions.

    Returns
    -------
    HistoryEntry
        Persisted entry.
    """
    entry = HistoryEntry(
        account_id=account_id,
        action=action,
        user_id=actor.id,
        user_name=actor.display_name,
        email=actor.email,
        invite_id=invite_id,
        timestamp=timestamp or utcnow(),
    )
    session.add(entry)
    await session.flush()
    return entry


async def recent_global(session: AsyncSession, limit: int) -> list[HistoryEntry]:
    """Return the most recent entries across all accounts.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    limit : int
        Maximum number of entries.

    Returns
    -------
    list[HistoryEntry]
        Entries newest first, undated entries last.
    """
    result = await session.execute(
        select(HistoryEntry)
        .order_by(HistoryEntry.timestamp.desc().nulls_last(), HistoryEntry.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def recent_for_account(
    session: AsyncSession, account_id: UUID, limit: int
) -> list[HistoryEntry]:
    """Return the most recent entries of one account.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Account identifier; deleted accounts still have readable history.
    limit : int
        Maximum number of entries.

    Returns
    -------
    list[HistoryEntry]
        Entries newest first, undated entries last.
    """
    result = await session.execute(
        select(HistoryEntry)
        .where(HistoryEntry.account_id == account_id)
        .order_by(HistoryEntry.timestamp.desc().nulls_last(), HistoryEntry.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


@dataclass(frozen=True, slots=True)
class UsageCount:
    """Reservation count for one user or account."""

    label: str
    total: int


@dataclass(slots=True)
class UsageSummary:
    """Aggregated pool usage.

    Attributes
    ----------
    total_accounts : int
        Number of accounts in the pool.
    busy : int
        Accounts currently reserved.
    free : int
        Accounts currently free.
    occupancy_percent : int
        Rounded share of busy accounts.
    reservations_total : int
        Checkouts among the analysed entries.
    reservations_today : int
        Checkouts dated today in the reporting timezone.
    reservations_last_seven_days : int
        Checkouts dated within the last seven calendar days.
    unique_users : int
        Distinct users among the checkouts.
    by_user : list[UsageCount]
        Checkouts per user, most active first.
    by_account : list[UsageCount]
        Checkouts per account, most used first.
    """

    total_accounts: int
    busy: int
    free: int
    occupancy_percent: int
    reservations_total: int
    reservations_today: int
    reservations_last_seven_days: int
    unique_users: int
    by_user: list[UsageCount] = field(default_factory=list)
    by_account: list[UsageCount] = field(default_factory=list)


def usage_summary(
    accounts: Sequence[Account],
    entries: Sequence[HistoryEntry],
    *,
    tz: tzinfo,
    now: datetime | None = None,
) -> UsageSummary:
    """Summarize pool status and reservation activity.

    Entries without a timestamp count toward totals and rankings but never
    toward dated buckets.

    Parameters
    ----------
    accounts : Sequence[Account]
        Current accounts.
    entries : Sequence[HistoryEntry]
        Recent history entries.
    tz : tzinfo
        Timezone that defines calendar days.
    now : datetime | None, default=None
        Reference time, defaults to now.

    Returns
    -------
    UsageSummary
        Aggregated usage figures.
    """
    today = (now or utcnow()).astimezone(tz).date()
    week_start = today - timedelta(days=6)

    busy = sum(1 for account in accounts if account.is_busy)
    total = len(accounts)
    checkouts = [entry for entry in entries if entry.action == ACTION_CHECKOUT]

    reservations_today = 0
    last_seven_days = 0
    for entry in checkouts:
        stamp = as_utc(entry.timestamp)
        if stamp is None:
            continue
        day = stamp.astimezone(tz).date()
        if day == today:
            reservations_today += 1
        if week_start <= day <= today:
            last_seven_days += 1

    user_counts = Counter(
        entry.user_name or entry.email or entry.user_id for entry in checkouts
    )
    usernames = {account.id: account.username for account in accounts}
    account_counts = Counter(
        usernames.get(entry.account_id, str(entry.account_id)) for entry in checkouts
    )
    logger.debug(
        "Summarized %d history entries over %d accounts", len(entries), total
    )
    return UsageSummary(
        total_accounts=total,
        busy=busy,
        free=total - busy,
        occupancy_percent=round(busy / total * 100) if total else 0,
        reservations_total=len(checkouts),
        reservations_today=reservations_today,
        reservations_last_seven_days=last_seven_days,
        unique_users=len(user_counts),
        by_user=[UsageCount(label, count) for label, count in user_counts.most_common()],
        by_account=[
            UsageCount(label, count) for label, count in account_counts.most_common()
        ],
    )
