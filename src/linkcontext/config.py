"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (LINKCONTEXT__FETCHER__TIMEOUT_SECONDS=20)
  2. linkcontext.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional — all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("linkcontext")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")

DEFAULT_USER_AGENT = "linkcontext-LinkScraper/1.0 (Mozilla/5.0 compatible)"


def _find_config_file() -> str | None:
    """Return the path of the first linkcontext.yaml found, or None."""
    candidates = [
        Path("linkcontext.yaml"),
        Path(platformdirs.user_config_dir("linkcontext")) / "linkcontext.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080
    auth_enabled: bool = False
    auth_key: str = ""


class FetcherSettings(BaseModel):
    timeout_seconds: float = Field(default=15.0, gt=0)
    # Per-file timeout for README and manifest probes against raw-content hosts
    readme_timeout_seconds: float = Field(default=10.0, gt=0)
    probe_timeout_seconds: float = Field(default=8.0, gt=0)
    max_content_length: int = Field(default=6000, ge=1)
    follow_redirects: bool = True
    max_redirects: int = Field(default=5, ge=0)
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrency: int = Field(default=4, ge=1)
    block_private_networks: bool = True


class CacheSettings(BaseModel):
    enabled: bool = True
    ttl_hours: int = 24
    db_path: str = _DEFAULT_DB_PATH
    cleanup_interval_hours: int = 6


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: LINKCONTEXT__SERVER__PORT=9090
        env_prefix="LINKCONTEXT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
