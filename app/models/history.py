"""Reservation history model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import utcnow

ACTION_CHECKOUT = "checkout"
ACTION_CHECKIN = "checkin"


class HistoryEntry(Base):
    """Append-only record of one reserve or release.

    ``account_id`` is deliberately not a foreign key so entries outlive
    deleted accounts. ``id`` grows with insertion order and breaks ties
    between entries sharing a timestamp.
    """

    __tablename__ = "history_entries"
    __table_args__ = (
        Index("ix_history_entries_timestamp", "timestamp"),
        Index("ix_history_entries_account_timestamp", "account_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True))
    action: Mapped[str] = mapped_column(String(16))
    user_id: Mapped[str] = mapped_column(String(320))
    user_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(320))
    invite_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))
    timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
