"""Bootstrap and member schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel


class BootstrapRequest(BaseModel):
    """Create the first admin member."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)


class MemberCreateRequest(BaseModel):
    """Add a team member."""

    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    role: Literal["admin", "user"] = "user"


class MemberResponse(APIModel):
    """Member metadata."""

    id: UUID
    name: str
    email: str
    role: str
    created_at: datetime


class MemberTokenResponse(APIModel):
    """Return a generated member token exactly once."""

    token_id: UUID
    token: str
    member: MemberResponse
