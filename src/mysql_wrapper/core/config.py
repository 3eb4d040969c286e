"""Configuration management for MySQL Wrapper.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. Keyword overrides passed to resolve_settings()
2. DSN (parsed into components)
3. Environment variables (MYSQL_HOST, MYSQL_PORT, MYSQL_DATABASE, ...)
4. Named profile (profile_name or MYSQL_WRAPPER_PROFILE env var)
5. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from mysql_wrapper.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "mysql-wrapper" / "config.toml"

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# MySQL's default max_allowed_packet (4 MiB).
DEFAULT_MAX_STATEMENT_LENGTH = 4194304

_ENV_VARS: dict[str, str] = {
    "MYSQL_HOST": "host",
    "MYSQL_PORT": "port",
    "MYSQL_DATABASE": "database",
    "MYSQL_USER": "user",
    "MYSQL_PASSWORD": "password",  # pragma: allowlist secret
}

_INT_FIELDS = {"port", "connect_timeout", "max_statement_length"}


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Supports mysql:// and mysql+pymysql:// schemes with query params."""
    parsed = urlparse(dsn)
    if parsed.scheme not in ("mysql", "mysql+pymysql"):
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'mysql'"
        raise ConfigError(msg)

    result: dict[str, Any] = {}
    if parsed.hostname:
        result["host"] = parsed.hostname
    try:
        port = parsed.port
    except ValueError as e:
        raise ConfigError(f"Invalid port in DSN: {e}") from e
    if port:
        result["port"] = port
    if parsed.path and parsed.path.strip("/"):
        result["database"] = parsed.path.strip("/")
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    query_params = parse_qs(parsed.query)
    if "charset" in query_params:
        result["charset"] = query_params["charset"][0]
    if "connect_timeout" in query_params:
        try:
            result["connect_timeout"] = int(query_params["connect_timeout"][0])
        except ValueError as e:
            raise ConfigError(f"Invalid connect_timeout in DSN: {e}") from e
    return result


class DatabaseSettings(BaseModel):
    """Connection parameters and encoding settings for one database.

    Frozen: a client reads these once at construction and never mutates them.
    """

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = 3306
    database: str
    user: str | None = None
    password: str | None = None
    charset: str = "utf8mb4"
    connect_timeout: int = 10
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    log_queries: bool = False
    log_results: bool = False
    max_statement_length: int | None = None

    @field_validator("host", "database")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v

    @field_validator("timestamp_format")
    @classmethod
    def validate_timestamp_format(cls, v: str) -> str:
        if not v:
            raise ValueError("timestamp_format must not be empty")
        return v

    @field_validator("max_statement_length")
    @classmethod
    def validate_max_statement_length(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            msg = f"Invalid max_statement_length: {v}. Must be positive"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def connection_url(self) -> str:
        userinfo = ""
        if self.user:
            if self.password:
                userinfo = f"{self.user}:***@"
            else:
                userinfo = f"{self.user}@"
        return f"mysql://{userinfo}{self.host}:{self.port}/{self.database}"

    def connect_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for pymysql.connect()."""
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "charset": self.charset,
            "connect_timeout": self.connect_timeout,
            "autocommit": False,
        }
        if self.user is not None:
            kwargs["user"] = self.user
        if self.password is not None:
            kwargs["password"] = self.password
        return kwargs


class Profile(BaseModel):
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    charset: str | None = None
    connect_timeout: int | None = None
    timestamp_format: str | None = None
    log_queries: bool | None = None
    log_results: bool | None = None
    max_statement_length: int | None = None


class AppConfig(BaseModel):
    default_profile: str | None = None
    profiles: dict[str, Profile] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_settings(
    config: AppConfig | None = None,
    profile_name: str | None = None,
    dsn: str | None = None,
    **overrides: Any,
) -> DatabaseSettings:
    """Resolve DatabaseSettings using the precedence chain.

    overrides > DSN > env > profile > built-in defaults.
    """
    if config is None:
        config = AppConfig()
    resolved: dict[str, Any] = {}

    effective_profile = profile_name
    if not effective_profile:
        effective_profile = os.environ.get("MYSQL_WRAPPER_PROFILE")
    if not effective_profile:
        effective_profile = config.default_profile

    if effective_profile:
        if effective_profile not in config.profiles:
            available = (
                ", ".join(sorted(config.profiles.keys())) if config.profiles else "none"
            )
            msg = f"Unknown profile: '{effective_profile}'. Available profiles: {available}"
            raise ConfigError(msg)
        profile = config.profiles[effective_profile]
        if profile.dsn:
            resolved.update(parse_dsn(profile.dsn))
        for key in profile.model_fields_set:
            value = getattr(profile, key)
            if key != "dsn" and value is not None:
                resolved[key] = value

    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if field_name in _INT_FIELDS:
            try:
                resolved[field_name] = int(value)
            except ValueError:
                msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
                raise ConfigError(msg) from None
        else:
            resolved[field_name] = value

    if dsn:
        resolved.update(parse_dsn(dsn))

    for key, value in overrides.items():
        if value is not None:
            resolved[key] = value

    if not resolved.get("database"):
        raise ConfigError("No database name configured")

    try:
        return DatabaseSettings(**resolved)
    except Exception as e:
        raise ConfigError(f"Invalid database settings: {e}") from e
