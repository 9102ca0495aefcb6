"""Shared account model."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import CreatedAtMixin, uuid_column

STATUS_FREE = "free"
STATUS_BUSY = "busy"


class Account(CreatedAtMixin, Base):
    """Shared external-service credential set.

    ``status`` is ``busy`` exactly when ``owner_id`` is set. The unique
    constraint on ``owner_id`` keeps one busy account per holder.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = uuid_column()
    username: Mapped[str] = mapped_column(String(255), unique=True)
    email: Mapped[str] = mapped_column(String(320))
    encrypted_password: Mapped[bytes | None] = mapped_column(LargeBinary)
    wrapped_data_key: Mapped[bytes | None] = mapped_column(LargeBinary)
    status: Mapped[str] = mapped_column(String(16), default=STATUS_FREE)
    owner: Mapped[str | None] = mapped_column(String(255))
    owner_id: Mapped[str | None] = mapped_column(String(320), unique=True)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_returned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    external_busy: Mapped[bool | None] = mapped_column(Boolean)
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, default=1)

    @property
    def is_busy(self) -> bool:
        """Whether the account is currently reserved."""
        return self.status == STATUS_BUSY

    @property
    def has_password(self) -> bool:
        """Whether a password is stored."""
        return self.encrypted_password is not None
