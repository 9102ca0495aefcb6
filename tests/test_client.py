"""Python SDK tests."""

from uuid import uuid4

import httpx
import pytest

from account_pool import (
    AccountPoolAuthError,
    AccountPoolClient,
    AccountPoolValidationError,
    AccountUnavailableError,
    AlreadyHoldingError,
)


def _account_payload(account_id: str, status: str = "busy") -> dict:
    return {
        "id": account_id,
        "username": "qa01",
        "email": "qa01@x.com",
        "status": status,
        "owner": "Alice" if status == "busy" else None,
        "owner_id": "alice" if status == "busy" else None,
        "last_used_at": "2026-03-10T10:00:00Z",
        "last_returned_at": None,
        "external_busy": None,
        "last_checked_at": None,
        "has_password": True,
    }


class TestAccountPoolClient:
    """SDK client behavior tests."""

    def test_from_env_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Reject missing token environment configuration.

        Parameters
        ----------
        monkeypatch : pytest.MonkeyPatch
            Environment monkeypatch helper.

        Returns
        -------
        None
            Asserts env validation.
        """
        monkeypatch.delenv("ACCOUNT_POOL_TOKEN", raising=False)
        monkeypatch.setenv("ACCOUNT_POOL_BASE_URL", "http://example.test")

        with pytest.raises(AccountPoolValidationError):
            AccountPoolClient.from_env()

    def test_reservation_context_manager_auto_releases(self) -> None:
        """Release the account when leaving the context manager.

        Returns
        -------
        None
            Asserts reserve and release request flow.
        """
        account_id = str(uuid4())
        requests: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path))
            if request.url.path == f"/v1/accounts/{account_id}/reserve":
                return httpx.Response(
                    200,
                    json={
                        "account": _account_payload(account_id),
                        "password": "pw123",
                        "changed": True,
                    },
                )
            if request.url.path == f"/v1/accounts/{account_id}/release":
                return httpx.Response(200, json=_account_payload(account_id, "free"))
            raise AssertionError(
                f"Unexpected request {request.method} {request.url.path}"
            )

        client = AccountPoolClient(
            base_url="http://pool.test",
            token="mbr_test",
            transport=httpx.MockTransport(handler),
        )

        with client.reserve(account_id) as reservation:
            assert reservation.password == "pw123"
            assert reservation.account.owner == "Alice"
            assert reservation.account.last_used_at.tzinfo is not None

        assert requests == [
            ("POST", f"/v1/accounts/{account_id}/reserve"),
            ("POST", f"/v1/accounts/{account_id}/release"),
        ]

    def test_error_codes_map_to_typed_exceptions(self) -> None:
        """Prefer the error code header over the bare status.

        Returns
        -------
        None
            Asserts typed error mapping.
        """
        responses = {
            "/v1/accounts/quick-reserve": httpx.Response(
                409,
                json={"detail": "You already hold a reserved account; release it first"},
                headers={"X-Error-Code": "already_holding_reservation"},
            ),
            "/v1/accounts/mine": httpx.Response(401, json={"detail": "Invalid token"}),
        }
        taken_id = uuid4()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path in responses:
                return responses[request.url.path]
            return httpx.Response(
                409,
                json={"detail": "Account is already reserved by another user"},
                headers={"X-Error-Code": "account_unavailable"},
            )

        client = AccountPoolClient(
            base_url="http://pool.test",
            token="mbr_test",
            transport=httpx.MockTransport(handler),
        )

        with pytest.raises(AccountUnavailableError) as taken:
            client.reserve(taken_id)
        assert taken.value.status_code == 409
        assert str(taken.value) == "Account is already reserved by another user"

        with pytest.raises(AlreadyHoldingError):
            client.reserve_any()

        with pytest.raises(AccountPoolAuthError) as denied:
            client.current_reservation()
        assert denied.value.status_code == 401

    def test_transient_errors_are_retried(self) -> None:
        """Retry a 503 before succeeding.

        Returns
        -------
        None
            Asserts retry behavior.
        """
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer mbr_test"
            calls["count"] += 1
            if calls["count"] == 1:
                return httpx.Response(503, json={"detail": "busy"})
            return httpx.Response(
                200, content=b"null", headers={"Content-Type": "application/json"}
            )

        client = AccountPoolClient(
            base_url="http://pool.test",
            token="mbr_test",
            transport=httpx.MockTransport(handler),
        )

        assert client.current_reservation() is None
        assert calls["count"] == 2

    def test_list_and_history_parse_records(self) -> None:
        """Parse account and history payloads into typed records.

        Returns
        -------
        None
            Asserts response parsing.
        """
        account_id = str(uuid4())

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/accounts":
                return httpx.Response(200, json=[_account_payload(account_id, "free")])
            assert request.url.path == "/v1/history"
            assert request.url.params["limit"] == "5"
            return httpx.Response(
                200,
                json=[
                    {
                        "id": 1,
                        "account_id": account_id,
                        "action": "checkout",
                        "user_id": "alice",
                        "user_name": "Alice",
                        "email": None,
                        "invite_id": None,
                        "timestamp": None,
                    }
                ],
            )

        client = AccountPoolClient(
            base_url="http://pool.test",
            token="mbr_test",
            transport=httpx.MockTransport(handler),
        )

        accounts = client.list_accounts()
        history = client.recent_history(limit=5)

        assert accounts[0].is_free
        assert str(accounts[0].account_id) == account_id
        assert history[0].action == "checkout"
        assert history[0].timestamp is None
