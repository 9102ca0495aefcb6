"""Bootstrap and member token tests."""

import pytest


class TestMembers:
    """Admin member management."""

    @pytest.mark.asyncio
    async def test_bootstrap_runs_once(self, client, admin_headers) -> None:
        """Refuse a second bootstrap.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        admin_headers : dict[str, str]
            Admin bearer headers.

        Returns
        -------
        None
            Asserts one-time bootstrap.
        """
        response = await client.post(
            "/v1/bootstrap", json={"name": "Other", "email": "other@qa.test"}
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "Bootstrap already completed"

    @pytest.mark.asyncio
    async def test_member_tokens_can_be_revoked(
        self, client, admin_headers, make_member
    ) -> None:
        """Reject a member token after revocation.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        admin_headers : dict[str, str]
            Admin bearer headers.
        make_member : Callable
            Member factory.

        Returns
        -------
        None
            Asserts token lifecycle.
        """
        headers, member_id = await make_member("Alice", "alice@qa.test")
        second = await client.post(
            f"/v1/admin/members/{member_id}/tokens", headers=admin_headers
        )
        assert second.status_code == 200
        assert second.json()["token"].startswith("mbr_")

        revoked = await client.delete(
            f"/v1/admin/tokens/{second.json()['token_id']}", headers=admin_headers
        )
        assert revoked.status_code == 200

        old = await client.get(
            "/v1/accounts",
            headers={"Authorization": f"Bearer {second.json()['token']}"},
        )
        assert old.status_code == 401
        assert (await client.get("/v1/accounts", headers=headers)).status_code == 200

    @pytest.mark.asyncio
    async def test_member_management_is_admin_only(
        self, client, admin_headers, make_member
    ) -> None:
        """Keep member routes behind the admin role.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        admin_headers : dict[str, str]
            Admin bearer headers.
        make_member : Callable
            Member factory.

        Returns
        -------
        None
            Asserts role checks and email uniqueness.
        """
        headers, _ = await make_member("Alice", "alice@qa.test")

        forbidden = await client.get("/v1/admin/members", headers=headers)
        duplicate = await client.post(
            "/v1/admin/members",
            headers=admin_headers,
            json={"name": "Alice Again", "email": "alice@qa.test"},
        )
        listing = await client.get("/v1/admin/members", headers=admin_headers)

        assert forbidden.status_code == 403
        assert duplicate.status_code == 409
        assert {row["email"] for row in listing.json()} == {
            "admin@qa.test",
            "alice@qa.test",
        }
