"""SDK exception types."""

from __future__ import annotations


class AccountPoolError(Exception):
    """Base SDK error."""


class AccountPoolAPIError(AccountPoolError):
    """API request failed.

    Parameters
    ----------
    message : str
        Error message.
    status_code : int | None, default=None
        HTTP status code if available.
    code : str | None, default=None
        Machine-readable error code from the ``X-Error-Code`` header.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class AccountPoolAuthError(AccountPoolAPIError):
    """Authentication failed."""


class AccountPoolValidationError(AccountPoolAPIError):
    """Request was rejected as invalid or forbidden."""


class AccountPoolNotFoundError(AccountPoolAPIError):
    """Requested resource was not found."""


class AccountUnavailableError(AccountPoolAPIError):
    """Account was reserved by someone else first."""


class AlreadyHoldingError(AccountPoolAPIError):
    """Caller already holds another account."""


class AccountPoolConflictError(AccountPoolAPIError):
    """Request conflicted with current server state."""
