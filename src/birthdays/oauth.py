"""Google OAuth 2.0 authorization-code client.

Covers the two legs of the flow this service drives itself:

  1. ``build_authorization_url()`` — the consent-screen URL the browser is
     redirected to. A pure function of the static client registration.
  2. ``exchange_code_for_token()`` — a single POST to Google's token
     endpoint trading the callback's authorization code for tokens.

There is no retry and no refresh: a failed exchange raises
``TokenExchangeError`` immediately and the caller decides what the user
sees. Secret material (client secret, codes, tokens) is never logged.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from birthdays.config import DEFAULT_HTTP_TIMEOUT_S, GoogleOAuthConfig
from birthdays.errors import BirthdaysError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Google OAuth constants
# ---------------------------------------------------------------------------

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

CALENDAR_READONLY_SCOPE = "https://www.googleapis.com/auth/calendar.readonly"
DEFAULT_SCOPES = " ".join(["openid", "email", "profile", CALENDAR_READONLY_SCOPE])


class TokenExchangeError(BirthdaysError):
    """Raised when the authorization code → token exchange fails."""


class TokenGrant(BaseModel):
    """Parsed token endpoint response.

    Only ``access_token`` is used; the rest is kept for logging and for a
    future refresh flow.
    """

    access_token: str
    refresh_token: str | None = None
    scope: str | None = None
    token_type: str | None = None
    expires_in: int | None = None

    def __repr__(self) -> str:
        return (
            "TokenGrant(access_token='[REDACTED]', "
            f"refresh_token={'[REDACTED]' if self.refresh_token else None}, "
            f"scope={self.scope!r}, token_type={self.token_type!r}, "
            f"expires_in={self.expires_in!r})"
        )

    __str__ = __repr__


class GoogleOAuthClient:
    """Authorization-code flow against Google's OAuth endpoints.

    Parameters
    ----------
    config:
        Client id, client secret and the registered redirect URI.
    http_client:
        Shared ``httpx.AsyncClient``. When omitted a short-lived client is
        created per exchange.
    scopes:
        Space-separated scope string; defaults to ``DEFAULT_SCOPES``.
    """

    def __init__(
        self,
        config: GoogleOAuthConfig,
        http_client: httpx.AsyncClient | None = None,
        *,
        scopes: str = DEFAULT_SCOPES,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._scopes = scopes
        self._timeout = timeout

    @property
    def redirect_uri(self) -> str:
        return self._config.redirect_uri

    def build_authorization_url(self) -> str:
        """Return the Google consent URL for this client registration."""
        params = {
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "response_type": "code",
            "scope": self._scopes,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code_for_token(self, code: str) -> TokenGrant:
        """Exchange an authorization code for OAuth tokens.

        Parameters
        ----------
        code:
            Authorization code returned by Google in the callback.

        Returns
        -------
        TokenGrant
            The parsed token response; ``access_token`` is guaranteed non-empty.

        Raises
        ------
        TokenExchangeError
            If the HTTP call fails, the response is not a JSON object, or it
            carries no access token.
        """
        if not code or not code.strip():
            raise TokenExchangeError("Authorization code is empty")

        payload = {
            "code": code,
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "redirect_uri": self._config.redirect_uri,
            "grant_type": "authorization_code",
        }

        response = await self._post_token_request(payload)

        if response.status_code < 200 or response.status_code >= 300:
            # Log status code but not the raw body (may contain sensitive details)
            raise TokenExchangeError(f"Token endpoint returned HTTP {response.status_code}")

        try:
            body: Any = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise TokenExchangeError(f"Invalid JSON in token response: {exc}") from exc

        if not isinstance(body, dict):
            raise TokenExchangeError("Token response is not a JSON object")

        access_token = body.get("access_token")
        if not isinstance(access_token, str) or not access_token.strip():
            raise TokenExchangeError("Token response is missing a non-empty access_token")

        grant = TokenGrant(
            access_token=access_token.strip(),
            refresh_token=_optional_str(body.get("refresh_token")),
            scope=_optional_str(body.get("scope")),
            token_type=_optional_str(body.get("token_type")),
            expires_in=_optional_int(body.get("expires_in")),
        )
        logger.info(
            "Google OAuth code exchange succeeded (scope=%s, refresh_token=%s)",
            grant.scope,
            "present" if grant.refresh_token else "absent",
        )
        return grant

    async def _post_token_request(self, payload: dict[str, str]) -> httpx.Response:
        headers = {"Accept": "application/json"}
        try:
            if self._http_client is not None:
                return await self._http_client.post(GOOGLE_TOKEN_URL, data=payload, headers=headers)
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.post(GOOGLE_TOKEN_URL, data=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Network error during token exchange: {exc}") from exc


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return int(value)
    return None


# ---------------------------------------------------------------------------
# Provider error sanitization
# ---------------------------------------------------------------------------

_KNOWN_PROVIDER_ERRORS: dict[str, str] = {
    "access_denied": "You declined access to your calendar. Sign in again to continue.",
    "invalid_request": "The sign-in request was malformed. Please try again.",
    "unauthorized_client": "This application is not authorized to use Google sign-in.",
    "unsupported_response_type": "Unsupported response type. Please try again.",
    "invalid_scope": "One or more requested permissions are invalid or not permitted.",
    "server_error": "Google encountered an internal error. Please try again.",
    "temporarily_unavailable": "Google sign-in is temporarily unavailable. Please try again later.",
}


def sanitize_provider_error(error: str) -> str:
    """Convert a provider error code into a safe, user-facing message.

    Unknown error codes are replaced with a generic message so raw provider
    text is never echoed back.
    """
    return _KNOWN_PROVIDER_ERRORS.get(
        error,
        "Google sign-in failed. Please try again.",
    )
