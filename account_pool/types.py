"""SDK response types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from account_pool.client import AccountPoolClient


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an optional ISO datetime string.

    Parameters
    ----------
    value : str | None
        ISO-formatted datetime string.

    Returns
    -------
    datetime | None
        Parsed datetime, or ``None``.
    """
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True, slots=True)
class AccountInfo:
    """Shared account state.

    Attributes
    ----------
    account_id : UUID
        Account identifier.
    username : str
        External-service username.
    email : str
        External-service login email.
    status : str
        ``free`` or ``busy``.
    owner : str | None
        Display name of the holder.
    owner_id : str | None
        Identity of the holder.
    last_used_at : datetime | None
        Last reservation time.
    last_returned_at : datetime | None
        Last release time.
    """

    account_id: UUID
    username: str
    email: str
    status: str
    owner: str | None
    owner_id: str | None
    last_used_at: datetime | None
    last_returned_at: datetime | None

    @property
    def is_free(self) -> bool:
        """Whether the account can be reserved."""
        return self.status == "free"

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "AccountInfo":
        """Build from an API payload."""
        return cls(
            account_id=UUID(data["id"]),
            username=data["username"],
            email=data["email"],
            status=data["status"],
            owner=data.get("owner"),
            owner_id=data.get("owner_id"),
            last_used_at=parse_datetime(data.get("last_used_at")),
            last_returned_at=parse_datetime(data.get("last_returned_at")),
        )


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """One reserve or release event."""

    account_id: UUID
    action: str
    user_id: str
    user_name: str | None
    timestamp: datetime | None


@dataclass(slots=True)
class ReservationHandle:
    """Context-managed reservation.

    Parameters
    ----------
    client : AccountPoolClient
        SDK client that made the reservation.
    account : AccountInfo
        Reserved account.
    password : str | None
        Account password revealed to the holder.
    auto_release : bool, default=True
        Whether to release the account on context exit.
    """

    client: "AccountPoolClient"
    account: AccountInfo
    password: str | None
    auto_release: bool = True
    _released: bool = False

    @property
    def account_id(self) -> UUID:
        """Reserved account identifier."""
        return self.account.account_id

    def release(self) -> None:
        """Release the account once.

        Returns
        -------
        None
            Releases the account if still held.
        """
        if self._released:
            return
        self.client.release(self.account.account_id)
        self._released = True

    def __enter__(self) -> "ReservationHandle":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        if self.auto_release:
            self.release()
