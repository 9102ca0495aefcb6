"""Job trigger schemas."""

from datetime import datetime

from app.schemas.common import APIModel


class ResetResponse(APIModel):
    """Bulk reset outcome."""

    reset: int
    at: datetime


class ReconcileResponse(APIModel):
    """External-status check outcome."""

    updated: int
    busy_count: int
    checked_at: datetime
    discrepancies: list[str]
