"""Ledger error taxonomy."""

from __future__ import annotations

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    """Base class for errors surfaced by the account ledger.

    Parameters
    ----------
    detail : str | None, default=None
        Human-readable message overriding the class default.
    """

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request failed"
    code: str = "ledger_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers={"X-Error-Code": self.code},
        )


class AccountValidationError(LedgerError):
    """Account fields are missing or malformed."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid account data"
    code = "validation_error"


class AccountNotFound(LedgerError):
    """Target account does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Account not found"
    code = "account_not_found"


class InviteNotFound(LedgerError):
    """Invite token does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Invite not found"
    code = "invite_not_found"


class AlreadyHoldingReservation(LedgerError):
    """Acting user already holds another account."""

    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "You already hold a reserved account; release it first"
    code = "already_holding_reservation"


class AccountUnavailable(LedgerError):
    """Account was taken by someone else."""

    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Account is already reserved by another user"
    code = "account_unavailable"


class StaleAccountState(LedgerError):
    """Account changed between read and write."""

    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Account changed concurrently; refresh and try again"
    code = "stale_account_state"


class NotOwner(LedgerError):
    """Release attempted by someone other than the holder."""

    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Only the current holder can release this account"
    code = "not_owner"


class PermissionDenied(LedgerError):
    """Caller lacks the required role."""

    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Admin role required"
    code = "permission_denied"


class Unauthenticated(LedgerError):
    """Caller identity could not be verified."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_detail = "Missing token"
    code = "unauthenticated"


class InviteInvalid(LedgerError):
    """Invite is expired, exhausted or unknown."""

    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Invite is not valid"
    code = "invite_invalid"


class InviteExhausted(LedgerError):
    """Invite lost the race for its last use."""

    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Invite has exhausted its uses"
    code = "invite_exhausted"


class StoreUnavailable(LedgerError):
    """Database could not be reached in time."""

    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The database is temporarily unavailable; try again shortly"
    code = "store_unavailable"


class StatusApiNotConfigured(LedgerError):
    """External status credentials are missing."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "External status API credentials are not configured"
    code = "status_api_not_configured"


class StatusApiUnavailable(LedgerError):
    """External status API failed."""

    status_code_default = status.HTTP_502_BAD_GATEWAY
    default_detail = "Failed to query the external status API"
    code = "status_api_unavailable"
