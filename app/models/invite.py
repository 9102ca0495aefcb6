"""Invite capability model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.mixins import CreatedAtMixin, uuid_column


class Invite(CreatedAtMixin, Base):
    """Time and use limited guest access token.

    Only the SHA-256 digest of the token is stored.
    """

    __tablename__ = "invites"

    id: Mapped[uuid.UUID] = uuid_column()
    token_lookup: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    label: Mapped[str | None] = mapped_column(String(255))
    invitee_email: Mapped[str | None] = mapped_column(String(320))
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    max_uses: Mapped[int | None] = mapped_column(Integer)
    remaining_uses: Mapped[int | None] = mapped_column(Integer)
