"""Synchronous Python SDK client."""

from __future__ import annotations

import os
from time import sleep
from typing import Any
from uuid import UUID

import httpx

from account_pool.exceptions import (
    AccountPoolAPIError,
    AccountPoolAuthError,
    AccountPoolConflictError,
    AccountPoolNotFoundError,
    AccountPoolValidationError,
    AccountUnavailableError,
    AlreadyHoldingError,
)
from account_pool.types import AccountInfo, HistoryItem, ReservationHandle, parse_datetime


class AccountPoolClient:
    """Client for the member-facing account pool API.

    Parameters
    ----------
    base_url : str
        Service base URL.
    token : str
        Member bearer token.
    timeout : float, default=10.0
        Request timeout in seconds.
    max_retries : int, default=2
        Number of retries for transient errors.
    transport : httpx.BaseTransport | None, default=None
        Optional transport for tests or advanced usage.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._client = httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "AccountPoolClient":
        """Build a client from environment variables.

        Expected variables
        ------------------
        ACCOUNT_POOL_BASE_URL
            Service base URL. Defaults to ``http://127.0.0.1:8000``.
        ACCOUNT_POOL_TOKEN
            Required member bearer token.

        Returns
        -------
        AccountPoolClient
            Configured SDK client.
        """
        base_url = os.environ.get("ACCOUNT_POOL_BASE_URL", "http://127.0.0.1:8000")
        token = os.environ.get("ACCOUNT_POOL_TOKEN")
        if not token:
            raise AccountPoolValidationError(
                "ACCOUNT_POOL_TOKEN is required to create the client"
            )
        return cls(base_url=base_url, token=token)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def list_accounts(self) -> list[AccountInfo]:
        """List accounts ordered by username.

        Returns
        -------
        list[AccountInfo]
            All accounts with their current status.
        """
        response = self._request("GET", "/v1/accounts")
        return [AccountInfo.from_payload(item) for item in response.json()]

    def reserve(self, account_id: UUID) -> ReservationHandle:
        """Reserve a specific account.

        Parameters
        ----------
        account_id : UUID
            Account to reserve.

        Returns
        -------
        ReservationHandle
            Context-manageable reservation.
        """
        response = self._request("POST", f"/v1/accounts/{account_id}/reserve")
        return self._handle(response.json())

    def reserve_any(self) -> ReservationHandle:
        """Reserve whichever free account the server picks.

        Returns
        -------
        ReservationHandle
            Context-manageable reservation.
        """
        response = self._request("POST", "/v1/accounts/quick-reserve")
        return self._handle(response.json())

    def release(self, account_id: UUID) -> AccountInfo:
        """Release an account.

        Parameters
        ----------
        account_id : UUID
            Account to release.

        Returns
        -------
        AccountInfo
            Freed account.
        """
        response = self._request("POST", f"/v1/accounts/{account_id}/release")
        return AccountInfo.from_payload(response.json())

    def current_reservation(self) -> AccountInfo | None:
        """Return the account the caller holds, if any."""
        response = self._request("GET", "/v1/accounts/mine")
        data = response.json()
        return AccountInfo.from_payload(data) if data else None

    def recent_history(self, *, limit: int = 50) -> list[HistoryItem]:
        """Return recent events across all accounts.

        Parameters
        ----------
        limit : int, default=50
            Maximum number of events.

        Returns
        -------
        list[HistoryItem]
            Events newest first.
        """
        response = self._request("GET", "/v1/history", params={"limit": limit})
        return [
            HistoryItem(
                account_id=UUID(item["account_id"]),
                action=item["action"],
                user_id=item["user_id"],
                user_name=item.get("user_name"),
                timestamp=parse_datetime(item.get("timestamp")),
            )
            for item in response.json()
        ]

    def _handle(self, data: dict[str, Any]) -> ReservationHandle:
        return ReservationHandle(
            client=self,
            account=AccountInfo.from_payload(data["account"]),
            password=data.get("password"),
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an HTTP request with light retry logic.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Relative request path.
        **kwargs : Any
            Additional request arguments.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        attempts = self.max_retries + 1
        for attempt in range(attempts):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                if attempt < self.max_retries:
                    sleep(0.1 * (attempt + 1))
                    continue
                raise AccountPoolAPIError(str(exc)) from exc

            if response.status_code < 400:
                return response
            if _is_transient_response(response) and attempt < self.max_retries:
                sleep(0.1 * (attempt + 1))
                continue
            raise _exception_for_response(response)
        raise AccountPoolAPIError("Request failed")

    def __enter__(self) -> "AccountPoolClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        self.close()


def _is_transient_response(response: httpx.Response) -> bool:
    """Return whether a response is worth retrying."""
    return response.status_code in {502, 503, 504}


def _exception_for_response(response: httpx.Response) -> AccountPoolAPIError:
    """Map an error response to a typed SDK exception.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    AccountPoolAPIError
        Typed SDK error.
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    detail = data.get("detail") if isinstance(data, dict) else None
    message = (
        detail
        if isinstance(detail, str)
        else f"Account pool request failed with status {response.status_code}"
    )
    code = response.headers.get("X-Error-Code")
    status_code = response.status_code

    if code == "account_unavailable":
        return AccountUnavailableError(message, status_code=status_code, code=code)
    if code == "already_holding_reservation":
        return AlreadyHoldingError(message, status_code=status_code, code=code)
    if status_code == 401:
        return AccountPoolAuthError(message, status_code=status_code, code=code)
    if status_code == 404:
        return AccountPoolNotFoundError(message, status_code=status_code, code=code)
    if status_code == 409:
        return AccountPoolConflictError(message, status_code=status_code, code=code)
    if status_code in {400, 403, 422}:
        return AccountPoolValidationError(message, status_code=status_code, code=code)
    return AccountPoolAPIError(message, status_code=status_code, code=code)
