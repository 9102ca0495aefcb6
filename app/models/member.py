"""Member and access token models."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.mixins import CreatedAtMixin, uuid_column

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class Member(CreatedAtMixin, Base):
    """Team member allowed to use the pool."""

    __tablename__ = "members"

    id: Mapped[uuid.UUID] = uuid_column()
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(320), unique=True)
    role: Mapped[str] = mapped_column(String(16), default=ROLE_USER)

    tokens = relationship("AccessToken", back_populates="member")

    @property
    def is_admin(self) -> bool:
        """Whether the member has the admin role."""
        return self.role == ROLE_ADMIN


class AccessToken(CreatedAtMixin, Base):
    """Bearer token bound to a member."""

    __tablename__ = "access_tokens"
    __table_args__ = (Index("ix_access_tokens_lookup", "token_lookup"),)

    id: Mapped[uuid.UUID] = uuid_column()
    member_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("members.id"))
    token_hash: Mapped[str] = mapped_column(String(512))
    token_lookup: Mapped[str] = mapped_column(String(64))
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    member = relationship("Member", back_populates="tokens", lazy="joined")
