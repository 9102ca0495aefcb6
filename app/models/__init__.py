"""ORM models."""

from app.models.account import Account
from app.models.history import HistoryEntry
from app.models.invite import Invite
from app.models.member import AccessToken, Member

__all__ = [
    "AccessToken",
    "Account",
    "HistoryEntry",
    "Invite",
    "Member",
]
