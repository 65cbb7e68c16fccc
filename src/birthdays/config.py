"""Application configuration loading and validation.

Reads the process environment and returns a validated, frozen
``AppConfig``. Only the Google OAuth client credentials are required;
everything else has a development-friendly default.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from birthdays.errors import BirthdaysError

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_PORT = 3000
DEFAULT_HTTP_TIMEOUT_S = 15.0
CALLBACK_PATH = "/auth/google/callback"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


class ConfigError(BirthdaysError):
    """Raised when configuration is missing, malformed, or invalid."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration from ``LOG_LEVEL`` / ``LOG_FORMAT``."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"


@dataclass(frozen=True)
class GoogleOAuthConfig:
    """Static OAuth client registration."""

    client_id: str
    client_secret: str
    redirect_uri: str

    def __repr__(self) -> str:
        return (
            f"GoogleOAuthConfig(client_id={self.client_id!r}, "
            f"client_secret='[REDACTED]', redirect_uri={self.redirect_uri!r})"
        )


@dataclass(frozen=True)
class AppConfig:
    """Validated application configuration."""

    google: GoogleOAuthConfig
    base_url: str = DEFAULT_BASE_URL
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    wrap_past_dates: bool = False
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _require(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"Required environment variable {name} is not set")
    return value


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw!r}. Expected an integer.") from exc
    if not 0 < value < 65536:
        raise ConfigError(f"Invalid {name}: {value}. Expected a TCP port (1-65535).")
    return value


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {raw!r}. Expected a number of seconds.") from exc
    if value <= 0:
        raise ConfigError(f"Invalid {name}: {value}. Expected a positive number of seconds.")
    return value


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    raise ConfigError(f"Invalid {name}: {raw!r}. Expected true or false.")


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    """Build an ``AppConfig`` from environment variables.

    Parameters
    ----------
    env:
        Mapping to read from. Defaults to ``os.environ``.

    Raises
    ------
    ConfigError
        If a required variable is missing or a value cannot be parsed.
    """
    if env is None:
        env = os.environ

    base_url = env.get("BASE_URL", "").strip().rstrip("/") or DEFAULT_BASE_URL
    redirect_uri = env.get("GOOGLE_OAUTH_REDIRECT_URI", "").strip() or f"{base_url}{CALLBACK_PATH}"

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    log_format = env.get("LOG_FORMAT", "text").strip().lower() or "text"
    if log_format not in ("text", "json"):
        raise ConfigError(f"Invalid LOG_FORMAT: {log_format!r}. Expected 'text' or 'json'.")

    return AppConfig(
        google=GoogleOAuthConfig(
            client_id=_require(env, "GOOGLE_CLIENT_ID"),
            client_secret=_require(env, "GOOGLE_CLIENT_SECRET"),
            redirect_uri=redirect_uri,
        ),
        base_url=base_url,
        host=env.get("HOST", "").strip() or "0.0.0.0",
        port=_parse_int(env, "PORT", DEFAULT_PORT),
        http_timeout_s=_parse_float(env, "BIRTHDAYS_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_S),
        wrap_past_dates=_parse_bool(env, "BIRTHDAYS_WRAP_PAST_DATES", False),
        logging=LoggingConfig(level=log_level, format=log_format),
    )
