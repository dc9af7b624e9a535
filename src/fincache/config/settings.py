"""Runtime configuration for the financial data cache."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """~/.fincache holds the SQLite file, the local tier and logs."""
    return Path.home() / ".fincache"


class Settings(BaseSettings):
    """Values come from keyword args, then the environment, then `.env`."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Financial Data Cache"
    app_version: str = "0.1.0"

    data_dir: Optional[Path] = None
    # Remote tier database; a SQLite file under data_dir when unset
    database_url: Optional[str] = None

    log_level: str = "INFO"
    log_to_file: bool = False

    # Seed values for CacheConfig
    cache_default_ttl_days: int = Field(default=90, ge=1)
    cache_max_size_bytes: int = Field(default=50 * 1024 * 1024, ge=0)
    cache_use_local_storage: bool = True
    cache_use_remote_storage: bool = True
    cache_enable_compression: bool = False
    cache_max_age_days: int = Field(default=180, ge=1)
    cache_enable_background_refresh: bool = True
    cache_background_refresh_delay_seconds: float = Field(default=1.0, ge=0)

    # Without a key the offline stub provider is wired in
    fmp_api_key: Optional[str] = None
    fmp_api_url: str = "https://financialmodelingprep.com/api/v3"
    fmp_timeout_seconds: float = Field(default=12.0, gt=0)

    def _ensure_dir(self, *parts: str) -> Path:
        path = (self.data_dir or get_default_data_dir()).joinpath(*parts)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_data_dir(self) -> Path:
        return self._ensure_dir()

    def get_database_url(self) -> str:
        """Explicit database_url wins; otherwise sqlite at <data_dir>/fincache.db."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.get_data_dir() / 'fincache.db'}"

    def get_local_cache_dir(self) -> Path:
        """Directory of JSON files behind the local tier."""
        return self._ensure_dir("local_cache")

    def get_log_dir(self) -> Path:
        return self._ensure_dir("logs")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide settings, built lazily on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() rereads the environment."""
    global _settings
    _settings = None
