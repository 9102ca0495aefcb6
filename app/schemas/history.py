"""History and usage schemas."""

from datetime import datetime
from uuid import UUID

from app.schemas.common import APIModel


class HistoryEntryResponse(APIModel):
    """One reserve or release event."""

    id: int
    account_id: UUID
    action: str
    user_id: str
    user_name: str | None
    email: str | None
    invite_id: UUID | None
    timestamp: datetime | None


class UsageCountResponse(APIModel):
    """Reservation count for a user or account."""

    label: str
    total: int


class UsageSummaryResponse(APIModel):
    """Aggregated pool usage."""

    total_accounts: int
    busy: int
    free: int
    occupancy_percent: int
    reservations_total: int
    reservations_today: int
    reservations_last_seven_days: int
    unique_users: int
    by_user: list[UsageCountResponse]
    by_account: list[UsageCountResponse]
