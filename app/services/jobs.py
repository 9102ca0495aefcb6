"""Reset and external-status reconciliation jobs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.models.account import STATUS_BUSY, STATUS_FREE, Account
from app.models.history import ACTION_CHECKIN
from app.models.mixins import utcnow
from app.services.accounts import list_accounts, write_if_unchanged
from app.services.auth import Actor
from app.services.errors import StatusApiNotConfigured, StatusApiUnavailable
from app.services.history import append_entry

logger = logging.getLogger(__name__)

SYSTEM_RESET_ACTOR = Actor(id="system-reset", display_name="Automatic reset")


@dataclass(frozen=True, slots=True)
class ResetResult:
    """Outcome of a bulk reset."""

    reset: int
    at: datetime


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of an external-status check.

    Attributes
    ----------
    updated : int
        Accounts whose observation was refreshed.
    busy_count : int
        Distinct usernames with a running external session.
    checked_at : datetime
        Time of the check.
    discrepancies : list[str]
        Usernames where the external observation disagrees with the ledger.
    """

    updated: int
    busy_count: int
    checked_at: datetime
    discrepancies: list[str] = field(default_factory=list)


async def reset_busy_accounts(session: AsyncSession) -> ResetResult:
    """Free every busy account and record a system check-in for each.

    Accounts that change while the reset runs are left to their new state.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    ResetResult
        Number of freed accounts and the reset time.
    """
    now = utcnow()
    result = await session.execute(
        select(Account).where(Account.status == STATUS_BUSY).order_by(Account.username)
    )
    freed = 0
    for account in result.scalars().all():
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
            logger.warning("Reset skipped %s: changed concurrently", account.username)
            continue
        await append_entry(
            session,
            account_id=account.id,
            action=ACTION_CHECKIN,
            actor=SYSTEM_RESET_ACTOR,
            timestamp=now,
        )
        freed += 1
    logger.info("Reset freed %d accounts", freed)
    return ResetResult(reset=freed, at=now)


def running_usernames(payload: Any) -> set[str]:
    """Extract usernames with running sessions from a status API payload.

    Items may be flat (``{"user_name": ...}``) or wrapped in an
    ``automation_session`` object.

    Parameters
    ----------
    payload : Any
        Decoded JSON body.

    Returns
    -------
    set[str]
        Usernames with an active session.
    """
    if not isinstance(payload, list):
        raise StatusApiUnavailable("Unexpected response from the external status API")
    users: set[str] = set()
    for item in payload:
        if not isinstance(item, dict):
            continue
        session_data = item.get("automation_session", item)
        if not isinstance(session_data, dict):
            continue
        user_name = session_data.get("user_name")
        if user_name:
            users.add(str(user_name))
    return users


async def fetch_running_usernames(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> set[str]:
    """Query the external status API.

    Parameters
    ----------
    settings : Settings
        Application settings with the API URL and credentials.
    transport : httpx.AsyncBaseTransport | None, default=None
        Optional transport for tests.

    Returns
    -------
    set[str]
        Usernames with an active session.
    """
    if not settings.status_api_username or not settings.status_api_access_key:
        raise StatusApiNotConfigured()
    async with httpx.AsyncClient(
        auth=(settings.status_api_username, settings.status_api_access_key),
        timeout=settings.status_api_timeout_seconds,
        transport=transport,
    ) as client:
        try:
            response = await client.get(
                settings.status_api_url, headers={"Cache-Control": "no-cache"}
            )
        except httpx.HTTPError as exc:
            logger.exception("External status API request failed")
            raise StatusApiUnavailable() from exc
    if response.is_error:
        logger.error(
            "External status API returned %s: %s",
            response.status_code,
            response.text[:500],
        )
        raise StatusApiUnavailable()
    try:
        payload = response.json()
    except ValueError as exc:
        raise StatusApiUnavailable(
            "Unexpected response from the external status API"
        ) from exc
    return running_usernames(payload)


async def reconcile_external_status(
    session: AsyncSession,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ReconcileResult:
    """Record the external busy observation on every account.

    Ledger ownership (``status``, ``owner``, ``owner_id``) is never changed;
    disagreements are reported for review instead.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    settings : Settings
        Application settings.
    transport : httpx.AsyncBaseTransport | None, default=None
        Optional transport for tests.

    Returns
    -------
    ReconcileResult
        Counts and usernames that disagree.
    """
    busy_users = await fetch_running_usernames(settings, transport)
    now = utcnow()
    accounts = await list_accounts(session)
    discrepancies: list[str] = []
    for account in accounts:
        account.external_busy = account.username in busy_users
        account.last_checked_at = now
        if account.external_busy != account.is_busy:
            discrepancies.append(account.username)
    await session.flush()
    if discrepancies:
        logger.warning(
            "External status disagrees for %d accounts: %s",
            len(discrepancies),
            ", ".join(discrepancies),
        )
    logger.info(
        "Reconciled %d accounts, %d running externally", len(accounts), len(busy_users)
    )
    return ReconcileResult(
        updated=len(accounts),
        busy_count=len(busy_users),
        checked_at=now,
        discrepancies=discrepancies,
    )
