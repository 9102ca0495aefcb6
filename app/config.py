"""Runtime configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes
    ----------
    app_name : str
        Human-readable application name.
    database_url : str
        SQLAlchemy database URL.
    master_key_path : Path
        Local file containing the envelope master key.
    store_timeout_seconds : float
        Upper bound on waiting for a locked store connection.
    bootstrap_enabled : bool
        Whether one-time unauthenticated bootstrap is allowed.
    strict_owner_release : bool
        Whether only the holder (or an admin) may release a busy account.
    history_default_limit : int
        Default page size for history reads.
    scheduler_enabled : bool
        Whether the lifespan starts the background job scheduler.
    reset_hour : int
        Local hour at which the daily reset frees every busy account.
    reset_timezone : str
        IANA timezone used for the daily reset.
    reconcile_interval_minutes : int
        Interval of the periodic external-status check, ``0`` disables it.
    status_api_url : str
        External test-service endpoint listing running sessions.
    status_api_username : str | None
        Basic-auth user for the status API.
    status_api_access_key : str | None
        Basic-auth key for the status API.
    status_api_timeout_seconds : float
        Request timeout for the status API.
    log_level : str
        Level applied to the ``app`` logger.
    """

    model_config = SettingsConfigDict(env_prefix="ACCOUNT_POOL_", extra="ignore")

    app_name: str = "QA Account Pool"
    database_url: str = "sqlite+aiosqlite:///./account_pool.db"
    master_key_path: Path = Field(default=Path(".account_pool_master.key"))
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    bootstrap_enabled: bool = True
    strict_owner_release: bool = False
    history_default_limit: int = Field(default=50, ge=1, le=500)
    scheduler_enabled: bool = True
    reset_hour: int = Field(default=18, ge=0, le=23)
    reset_timezone: str = "America/Sao_Paulo"
    reconcile_interval_minutes: int = Field(default=0, ge=0)
    status_api_url: str = (
        "https://api.browserstack.com/automate/sessions.json?status=running&limit=100"
    )
    status_api_username: str | None = None
    status_api_access_key: str | None = None
    status_api_timeout_seconds: float = 10.0
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings.

    Returns
    -------
    Settings
        Cached settings instance.
    """
    return Settings()
