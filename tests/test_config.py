"""Tests for environment configuration loading and validation."""

from __future__ import annotations

import pytest

from birthdays.config import (
    CALLBACK_PATH,
    DEFAULT_BASE_URL,
    DEFAULT_PORT,
    AppConfig,
    ConfigError,
    load_config,
)

pytestmark = pytest.mark.unit

MINIMAL_ENV = {
    "GOOGLE_CLIENT_ID": "cid.apps.googleusercontent.com",
    "GOOGLE_CLIENT_SECRET": "secret",
}


class TestLoadConfig:
    def test_minimal_env_uses_defaults(self):
        config = load_config(MINIMAL_ENV)

        assert isinstance(config, AppConfig)
        assert config.google.client_id == "cid.apps.googleusercontent.com"
        assert config.google.client_secret == "secret"
        assert config.base_url == DEFAULT_BASE_URL
        assert config.google.redirect_uri == f"{DEFAULT_BASE_URL}{CALLBACK_PATH}"
        assert config.port == DEFAULT_PORT
        assert config.wrap_past_dates is False
        assert config.logging.level == "INFO"
        assert config.logging.format == "text"

    def test_redirect_uri_derived_from_base_url(self):
        config = load_config({**MINIMAL_ENV, "BASE_URL": "https://birthdays.example.com/"})
        assert config.base_url == "https://birthdays.example.com"
        assert config.google.redirect_uri == "https://birthdays.example.com/auth/google/callback"

    def test_explicit_redirect_uri_wins(self):
        config = load_config(
            {
                **MINIMAL_ENV,
                "BASE_URL": "https://birthdays.example.com",
                "GOOGLE_OAUTH_REDIRECT_URI": "https://other.example.com/cb",
            }
        )
        assert config.google.redirect_uri == "https://other.example.com/cb"

    def test_full_env(self):
        config = load_config(
            {
                **MINIMAL_ENV,
                "HOST": "127.0.0.1",
                "PORT": "8080",
                "BIRTHDAYS_HTTP_TIMEOUT": "2.5",
                "BIRTHDAYS_WRAP_PAST_DATES": "yes",
                "LOG_LEVEL": "debug",
                "LOG_FORMAT": "JSON",
            }
        )
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.http_timeout_s == 2.5
        assert config.wrap_past_dates is True
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"

    @pytest.mark.parametrize("missing", ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"])
    def test_missing_credentials(self, missing):
        env = {k: v for k, v in MINIMAL_ENV.items() if k != missing}
        with pytest.raises(ConfigError, match=missing):
            load_config(env)

    def test_blank_credentials_are_missing(self):
        with pytest.raises(ConfigError):
            load_config({**MINIMAL_ENV, "GOOGLE_CLIENT_SECRET": "   "})

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("PORT", "http"),
            ("PORT", "70000"),
            ("BIRTHDAYS_HTTP_TIMEOUT", "soon"),
            ("BIRTHDAYS_HTTP_TIMEOUT", "0"),
            ("BIRTHDAYS_WRAP_PAST_DATES", "maybe"),
            ("LOG_FORMAT", "xml"),
        ],
    )
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigError):
            load_config({**MINIMAL_ENV, key: value})

    def test_reads_process_environment_by_default(self, monkeypatch):
        for key, value in MINIMAL_ENV.items():
            monkeypatch.setenv(key, value)
        monkeypatch.setenv("PORT", "4000")
        assert load_config().port == 4000

    def test_repr_hides_client_secret(self):
        config = load_config({**MINIMAL_ENV, "GOOGLE_CLIENT_SECRET": "super-secret-value"})
        assert "super-secret-value" not in repr(config)
