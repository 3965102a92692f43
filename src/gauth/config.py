"""Central configuration loaded from a YAML file and environment variables."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from gauth.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("/etc/gauth/config.yaml")


class ErrorCorrection(StrEnum):
    LOW = "L"
    MEDIUM = "M"
    QUARTILE = "Q"
    HIGH = "H"


class MainSettings(BaseModel):
    bind_ip: str = "127.0.0.1"
    port: int = Field(default=8000, gt=0, lt=65536)


class DBSettings(BaseModel):
    user: str = "gauth"
    password: str = ""
    dbname: str = "gauth"
    sslmode: str = "prefer"
    host: str = "localhost"
    port: int = Field(default=5432, gt=0, lt=65536)

    # Every store call is bounded by these two
    connect_timeout: int = Field(default=5, gt=0)
    statement_timeout_ms: int = Field(default=5000, gt=0)

    def conninfo_params(self) -> dict[str, Any]:
        """Keyword arguments for psycopg.conninfo.make_conninfo()."""
        return {
            "user": self.user,
            "password": self.password,
            "dbname": self.dbname,
            "sslmode": self.sslmode,
            "host": self.host,
            "port": self.port,
            "connect_timeout": self.connect_timeout,
            "options": f"-c statement_timeout={self.statement_timeout_ms}",
        }


class AuthSettings(BaseModel):
    secret_len: int = Field(default=20, gt=0)
    default_width: int = Field(default=200, gt=0)
    default_height: int = Field(default=200, gt=0)
    tolerance_windows: int = Field(default=0, ge=0)
    qr_error_correction: ErrorCorrection = ErrorCorrection.MEDIUM
    qr_url_base: str = "https://chart.googleapis.com/chart"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GAUTH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    main: MainSettings = Field(default_factory=MainSettings)
    db: DBSettings = Field(default_factory=DBSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # The YAML file arrives as init kwargs; the environment overrides it.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def read_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file into a plain dict."""
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Build the effective settings.

    With no explicit path the default location is used only if it exists.
    Any validation failure is raised as ConfigError so the caller can stop
    at startup instead of failing per request.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = read_config_file(path)
    elif DEFAULT_CONFIG_PATH.exists():
        data = read_config_file(DEFAULT_CONFIG_PATH)
    data.update(overrides)

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
