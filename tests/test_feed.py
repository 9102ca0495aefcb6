"""Live account feed tests."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from starlette.websockets import WebSocketDisconnect

from app.database import get_session
from app.main import app
from app.services.accounts import create_account
from app.services.feed import AccountFeed, account_feed, snapshot_of
class TestAccountFeed:
    """In-process snapshot fan-out."""

    @pytest.mark.asyncio
    async def test_subscribers_receive_published_snapshots(self) -> None:
        """Deliver each snapshot to every open subscription.

        Returns
        -------
        None
            Asserts fan-out and unsubscribe.
        """
        feed = AccountFeed()
        snapshot = [{"username": "qa01", "status": "busy"}]

        async with feed.subscribe() as first, feed.subscribe() as second:
            assert feed.subscriber_count == 2
            feed.publish(snapshot)
            assert first.receive_nowait() == snapshot
            assert second.receive_nowait() == snapshot

        assert feed.subscriber_count == 0
        feed.publish(snapshot)

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_newest(self) -> None:
        """Drop snapshots once a subscriber buffer is full.

        Returns
        -------
        None
            Asserts non-blocking publish.
        """
        feed = AccountFeed(buffer_size=1)

        async with feed.subscribe() as stream:
            feed.publish([{"n": 1}])
            feed.publish([{"n": 2}])
            assert stream.receive_nowait() == [{"n": 1}]
            assert feed.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_publish_current_reads_ordered_accounts(
        self, session_factory
    ) -> None:
        """Publish the stored list only when someone listens.

        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Factory for the test database.

        Returns
        -------
        None
            Asserts snapshots of committed state.
        """
        feed = AccountFeed()
        async with session_factory() as session:
            await create_account(
                session, username="qa02", email="qa02@x.com", password="pw"
            )
            await create_account(
                session, username="qa01", email="qa01@x.com", password="pw"
            )
            await session.commit()
            await feed.publish_current(session)

            async with feed.subscribe() as stream:
                await feed.publish_current(session)
                snapshot = stream.receive_nowait()

        assert [row["username"] for row in snapshot] == ["qa01", "qa02"]
        assert all(row["status"] == "free" for row in snapshot)
        assert "encrypted_password" not in snapshot[0]
        assert snapshot_of([]) == []


class TestLiveAccountsRoute:
    """Websocket subscription to the account list."""

    def test_live_route_sends_snapshots(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Refuse bad tokens, then push the list on connect and after a reserve.

        Parameters
        ----------
        tmp_path : Path
            Temporary directory for the test database.
        monkeypatch : pytest.MonkeyPatch
            Patch helper pointing the app at the test database.

        Returns
        -------
        None
            Asserts the initial ordered snapshot and the pushed update.
        """
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'live.db'}", poolclass=NullPool
        )
        factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        monkeypatch.setattr("app.main.engine", engine)

        async def _override_session() -> AsyncIterator[AsyncSession]:
            async with factory() as session:
                yield session

        app.dependency_overrides[get_session] = _override_session
        try:
            with TestClient(app) as client:
                token = client.post(
                    "/v1/bootstrap",
                    json={"name": "Quinn Admin", "email": "admin@qa.test"},
                ).json()["token"]
                headers = {"Authorization": f"Bearer {token}"}
                ids = {}
                for username in ("qa02", "qa01"):
                    response = client.post(
                        "/v1/accounts",
                        headers=headers,
                        json={
                            "username": username,
                            "email": f"{username}@pool.test",
                            "password": "pw",
                        },
                    )
                    assert response.status_code == 201
                    ids[username] = response.json()["id"]

                with pytest.raises(WebSocketDisconnect) as refused:
                    with client.websocket_connect("/v1/accounts/live?token=mbr_bad"):
                        pass
                assert refused.value.code == 1008

                with client.websocket_connect(
                    f"/v1/accounts/live?token={token}"
                ) as websocket:
                    initial = websocket.receive_json()
                    assert [row["username"] for row in initial] == ["qa01", "qa02"]
                    assert all(row["status"] == "free" for row in initial)

                    reserved = client.post(
                        f"/v1/accounts/{ids['qa01']}/reserve", headers=headers
                    )
                    assert reserved.status_code == 200

                    pushed = websocket.receive_json()
                    assert [row["username"] for row in pushed] == ["qa01", "qa02"]
                    assert pushed[0]["status"] == "busy"
                    assert pushed[0]["owner"] is not None
                    assert pushed[1]["status"] == "free"

                assert account_feed.subscriber_count == 0
        finally:
            app.dependency_overrides.clear()

    @pytest.mark.asyncio
    async def test_feed_failure_does_not_fail_committed_change(
        self, client, make_member, make_account, monkeypatch, caplog
    ) -> None:
        """Keep a committed reservation when notifying subscribers fails.

        Parameters
        ----------
        client : AsyncClient
            Test HTTP client.
        make_member : Callable
            Member factory.
        make_account : Callable
            Account factory.
        monkeypatch : pytest.MonkeyPatch
            Patch helper replacing the feed publisher.
        caplog : pytest.LogCaptureFixture
            Captured log records.

        Returns
        -------
        None
            Asserts the success response and the logged failure.
        """
        headers, _ = await make_member("Alice", "alice@qa.test")
        account_id = await make_account("qa01")

        async def _broken_publish(session) -> None:
            raise RuntimeError("feed down")

        monkeypatch.setattr(account_feed, "publish_current", _broken_publish)
        with caplog.at_level("ERROR", logger="app.routers.dependencies"):
            response = await client.post(
                f"/v1/accounts/{account_id}/reserve", headers=headers
            )

        assert response.status_code == 200
        assert "Live account feed update failed" in caplog.text
        stored = await client.get(f"/v1/accounts/{account_id}", headers=headers)
        assert stored.json()["status"] == "busy"
