"""Shared model helpers."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    """Return the current UTC time.

    Returns
    -------
    datetime
        Timezone-aware current timestamp.
    """
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps read back from SQLite.

    Parameters
    ----------
    value : datetime | None
        Stored timestamp.

    Returns
    -------
    datetime | None
        Timezone-aware timestamp, or ``None``.
    """
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CreatedAtMixin:
    """Creation timestamp column."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


def uuid_column() -> Mapped[uuid.UUID]:
    """Return a UUID primary-key column.

    Returns
    -------
    Mapped[uuid.UUID]
        SQLAlchemy mapped UUID column.
    """
    return mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
