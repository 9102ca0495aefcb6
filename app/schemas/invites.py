"""Invite schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel

MAX_INVITE_HOURS = 24 * 365 * 10
MAX_INVITE_USES = 1_000_000


class InviteCreateRequest(BaseModel):
    """Issue an invite."""

    label: str | None = Field(default=None, max_length=255)
    invitee_email: str | None = Field(default=None, max_length=320)
    expires_in_hours: float | None = Field(
        default=None, ge=-MAX_INVITE_HOURS, le=MAX_INVITE_HOURS, allow_inf_nan=False
    )
    max_uses: int | None = Field(default=None, ge=1, le=MAX_INVITE_USES)


class InviteCreateResponse(APIModel):
    """Issued invite; the token is shown only here."""

    id: UUID
    token: str
    expires_at: datetime | None
    remaining_uses: int | None


class InviteVerificationResponse(APIModel):
    """Invite validity."""

    valid: bool
    invitee_email: str | None = None
    label: str | None = None
    reason: str | None = None


class InviteAccountRequest(BaseModel):
    """Guest reserve or release target."""

    account_id: UUID
