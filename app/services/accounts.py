"""Account repository."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import STATUS_BUSY, STATUS_FREE, Account
from app.models.mixins import utcnow
from app.services.auth import Actor
from app.services.errors import (
    AccountNotFound,
    AccountValidationError,
    NotOwner,
    StaleAccountState,
)
from app.services.vault import open_password, seal_password, store_password

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"username", "email", "password", "status"})


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of a bulk import."""

    created: list[Account]
    skipped: list[str]


def _required(value: str | None, field_name: str) -> str:
    """Return a stripped required string or raise."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise AccountValidationError(f"{field_name} is required")
    return cleaned


async def get_account_or_404(session: AsyncSession, account_id: UUID) -> Account:
    """Return an account or raise.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Account identifier.

    Returns
    -------
    Account
        Matching account row.
    """
    account = await session.get(Account, account_id)
    if account is None:
        raise AccountNotFound()
    return account


async def _ensure_username_available(
    session: AsyncSession, username: str, exclude_id: UUID | None = None
) -> None:
    query = select(Account.id).where(Account.username == username)
    if exclude_id is not None:
        query = query.where(Account.id != exclude_id)
    result = await session.execute(query)
    if result.scalar_one_or_none() is not None:
        raise AccountValidationError("An account with this username already exists")


async def create_account(
    session: AsyncSession, *, username: str, email: str, password: str
) -> Account:
    """Insert a free account.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    username : str
        External-service username.
    email : str
        External-service login email.
    password : str
        External-service password, stored encrypted.

    Returns
    -------
    Account
        Persisted account with ``status=free`` and no owner.
    """
    username = _required(username, "username")
    email = _required(email, "email")
    if not password:
        raise AccountValidationError("password is required")
    await _ensure_username_available(session, username)

    account = Account(username=username, email=email, status=STATUS_FREE)
    store_password(account, password)
    session.add(account)
    await session.flush()
    logger.info("Created account %s", username)
    return account


async def write_if_unchanged(
    session: AsyncSession, account: Account, values: dict[str, Any]
) -> bool:
    """Apply values only if nobody committed a change since ``account`` was read.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account : Account
        Account as observed by the caller.
    values : dict[str, Any]
        Column values to write.

    Returns
    -------
    bool
        ``False`` when the stored version moved on and nothing was written.
    """
    result = await session.execute(
        update(Account)
        .where(Account.id == account.id, Account.version == account.version)
        .values(**values, version=account.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return False
    await session.refresh(account)
    return True


async def update_account(
    session: AsyncSession, account_id: UUID, changes: dict[str, Any]
) -> Account:
    """Apply a partial admin edit.

    Setting ``status`` to ``free`` also clears the owner fields.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Account identifier.
    changes : dict[str, Any]
        Provided fields among username, email, password and status.

    Returns
    -------
    Account
        Updated account row.
    """
    account = await get_account_or_404(session, account_id)
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise AccountValidationError(f"Cannot edit fields: {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    if "username" in changes:
        values["username"] = _required(changes["username"], "username")
        await _ensure_username_available(session, values["username"], account.id)
    if "email" in changes:
        values["email"] = _required(changes["email"], "email")
    if "password" in changes:
        if changes["password"]:
            sealed = seal_password(changes["password"])
            values["encrypted_password"] = sealed.encrypted_password
            values["wrapped_data_key"] = sealed.wrapped_data_key
        else:
            values["encrypted_password"] = None
            values["wrapped_data_key"] = None
    if "status" in changes:
        new_status = changes["status"]
        if new_status == STATUS_FREE:
            values.update(
                status=STATUS_FREE, owner=None, owner_id=None, last_returned_at=utcnow()
            )
        elif new_status == STATUS_BUSY:
            if account.owner_id is None:
                raise AccountValidationError(
                    "Accounts become busy only through a reservation"
                )
        else:
            raise AccountValidationError(f"Unknown status {new_status!r}")

    if not values:
        return account
    try:
        written = await write_if_unchanged(session, account, values)
    except IntegrityError as exc:
        await session.rollback()
        raise AccountValidationError(
            "An account with this username already exists"
        ) from exc
    if not written:
        raise StaleAccountState()
    logger.info("Updated account %s fields=%s", account.username, sorted(changes))
    return account


async def delete_account(session: AsyncSession, account_id: UUID) -> None:
    """Hard-delete an account; its history is kept.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    account_id : UUID
        Account identifier.
    """
    account = await get_account_or_404(session, account_id)
    await session.delete(account)
    await session.flush()
    logger.info("Deleted account %s", account.username)


async def list_accounts(session: AsyncSession) -> list[Account]:
    """List accounts by username.

    Parameters
    ----------
    session : AsyncSession
        Active database session.

    Returns
    -------
    list[Account]
        Accounts ordered by username ascending.
    """
    result = await session.execute(select(Account).order_by(Account.username.asc()))
    return list(result.scalars().all())


async def import_accounts(
    session: AsyncSession, items: Iterable[dict[str, str]]
) -> ImportResult:
    """Create accounts in bulk, skipping usernames that already exist.

    Parameters
    ----------
    session : AsyncSession
        Active database session.
    items : Iterable[dict[str, str]]
        Mappings with ``username``, ``email`` and ``password``.

    Returns
    -------
    ImportResult
        Created accounts and skipped usernames.
    """
    result = await session.execute(select(Account.username))
    known = set(result.scalars().all())
    created: list[Account] = []
    skipped: list[str] = []
    for item in items:
        username = (item.get("username") or "").strip()
        if username in known:
            skipped.append(username)
            continue
        account = await create_account(
            session,
            username=username,
            email=item.get("email", ""),
            password=item.get("password", ""),
        )
        known.add(account.username)
        created.append(account)
    return ImportResult(created=created, skipped=skipped)


def reveal_password(account: Account, actor: Actor) -> str | None:
    """Return the plaintext password to the holder or an admin.

    Parameters
    ----------
    account : Account
        Account row.
    actor : Actor
        Requesting identity.

    Returns
    -------
    str | None
        Plaintext password, or ``None`` when none is stored.
    """
    if not actor.is_admin and account.owner_id != actor.id:
        raise NotOwner("Only the current holder can view this password")
    return open_password(account)
