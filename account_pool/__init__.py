"""Python SDK for the QA account pool."""

from account_pool.client import AccountPoolClient
from account_pool.exceptions import (
    AccountPoolAPIError,
    AccountPoolAuthError,
    AccountPoolConflictError,
    AccountPoolError,
    AccountPoolNotFoundError,
    AccountPoolValidationError,
    AccountUnavailableError,
    AlreadyHoldingError,
)
from account_pool.types import AccountInfo, HistoryItem, ReservationHandle

__all__ = [
    "AccountInfo",
    "AccountPoolAPIError",
    "AccountPoolAuthError",
    "AccountPoolClient",
    "AccountPoolConflictError",
    "AccountPoolError",
    "AccountPoolNotFoundError",
    "AccountPoolValidationError",
    "AccountUnavailableError",
    "AlreadyHoldingError",
    "HistoryItem",
    "ReservationHandle",
]
