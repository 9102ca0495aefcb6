"""Pytest fixtures."""

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings
from app.database import Base, get_session
from app.main import app
from app.services.vault import _master_fernet

Headers = dict[str, str]


@pytest.fixture(autouse=True)
def _clear_settings_cache(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Reset cached settings and point to a test master key.

    Parameters
    ----------
    tmp_path : Path
        Temporary path fixture.
    monkeypatch : pytest.MonkeyPatch
        Environment monkeypatch helper.

    Yields
    ------
    None
        Applies environment overrides for each test.
    """
    get_settings.cache_clear()
    _master_fernet.cache_clear()
    monkeypatch.setenv("ACCOUNT_POOL_MASTER_KEY_PATH", str(tmp_path / "master.key"))
    monkeypatch.setenv("ACCOUNT_POOL_SCHEDULER_ENABLED", "false")
    monkeypatch.delenv("ACCOUNT_POOL_STRICT_OWNER_RELEASE", raising=False)
    yield
    get_settings.cache_clear()
    _master_fernet.cache_clear()


@pytest.fixture()
async def session_factory(
    tmp_path: Path,
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create a session factory over a fresh SQLite database.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory for the test database.

    Yields
    ------
    async_sessionmaker[AsyncSession]
        Factory bound to the test database.
    """
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(database_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture()
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """Create a test HTTP client backed by SQLite.

    Parameters
    ----------
    session_factory : async_sessionmaker[AsyncSession]
        Factory for the test database.

    Yields
    ------
    AsyncClient
        Configured test client.
    """

    async def _override_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
async def admin_headers(client: AsyncClient) -> Headers:
    """Bootstrap the first admin and return its auth headers.

    Parameters
    ----------
    client : AsyncClient
        Test HTTP client.

    Returns
    -------
    Headers
        Bearer headers of the admin member.
    """
    response = await client.post(
        "/v1/bootstrap",
        json={"name": "Quinn Admin", "email": "admin@qa.test"},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture()
def make_member(
    client: AsyncClient, admin_headers: Headers
) -> Callable[..., Awaitable[tuple[Headers, str]]]:
    """Return a helper that adds a member.

    Parameters
    ----------
    client : AsyncClient
        Test HTTP client.
    admin_headers : Headers
        Admin bearer headers.

    Returns
    -------
    Callable[..., Awaitable[tuple[Headers, str]]]
        Coroutine returning the member headers and member id.
    """

    async def _make(name: str, email: str, role: str = "user") -> tuple[Headers, str]:
        response = await client.post(
            "/v1/admin/members",
            headers=admin_headers,
            json={"name": name, "email": email, "role": role},
        )
        assert response.status_code == 200
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["member"]["id"]

    return _make


@pytest.fixture()
def make_account(
    client: AsyncClient, admin_headers: Headers
) -> Callable[..., Awaitable[str]]:
    """Return a helper that registers an account.

    Parameters
    ----------
    client : AsyncClient
        Test HTTP client.
    admin_headers : Headers
        Admin bearer headers.

    Returns
    -------
    Callable[..., Awaitable[str]]
        Coroutine returning the new account id.
    """

    async def _make(username: str, password: str = "s3cret") -> str:
        response = await client.post(
            "/v1/accounts",
            headers=admin_headers,
            json={
                "username": username,
                "email": f"{username}@pool.test",
                "password": password,
            },
        )
        assert response.status_code == 201
        return response.json()["id"]

    return _make
