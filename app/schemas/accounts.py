"""Account and reservation schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import APIModel


class AccountCreateRequest(BaseModel):
    """Register a shared account."""

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1)


class AccountUpdateRequest(BaseModel):
    """Partial admin edit; omitted fields are left untouched."""

    username: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=1, max_length=320)
    password: str | None = None
    status: Literal["free", "busy"] | None = None


class AccountResponse(APIModel):
    """Account state without secrets."""

    id: UUID
    username: str
    email: str
    status: str
    owner: str | None
    owner_id: str | None
    last_used_at: datetime | None
    last_returned_at: datetime | None
    external_busy: bool | None
    last_checked_at: datetime | None
    has_password: bool


class ReservationResponse(APIModel):
    """Reservation outcome with the credentials for the holder."""

    account: AccountResponse
    password: str | None
    changed: bool


class CredentialsResponse(APIModel):
    """Login details of an account."""

    username: str
    email: str
    password: str | None


class AccountImportItem(BaseModel):
    """One account in an import file."""

    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1)


class AccountImportResponse(APIModel):
    """Bulk import outcome."""

    created: list[AccountResponse]
    skipped: list[str]


class AccountExportItem(APIModel):
    """One account in an export file."""

    username: str
    email: str
    password: str
    status: str
    owner: str | None
    owner_id: str | None
    last_used_at: datetime | None
    last_returned_at: datetime | None
