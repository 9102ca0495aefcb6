"""Database primitives."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings


class Base(DeclarativeBase):
    """Base declarative model class."""

    metadata = MetaData()


def engine_options(database_url: str, timeout_seconds: float) -> dict[str, Any]:
    """Build engine keyword arguments for a database URL.

    Parameters
    ----------
    database_url : str
        SQLAlchemy database URL.
    timeout_seconds : float
        Maximum wait for a locked database.

    Returns
    -------
    dict[str, Any]
        Keyword arguments for ``create_async_engine``.
    """
    options: dict[str, Any] = {"future": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"timeout": timeout_seconds}
    return options


settings = get_settings()
engine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url, settings.store_timeout_seconds),
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session.

    Yields
    ------
    AsyncSession
        Active async SQLAlchemy session.
    """
    async with SessionLocal() as session:
        yield session
