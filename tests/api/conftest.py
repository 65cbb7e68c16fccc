"""Shared fixtures for web layer tests.

Covers:
- A fake Google upstream (token endpoint + Calendar events endpoint) behind
  ``httpx.MockTransport`` that records every request it receives
- An app built around that upstream with a fixed ``today``
- An ASGI client for driving the app
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

import httpx
import pytest
from fastapi import FastAPI

from birthdays.api.app import create_app
from birthdays.api.deps import get_today
from birthdays.calendar import GOOGLE_CALENDAR_API_BASE_URL
from birthdays.config import AppConfig, GoogleOAuthConfig
from birthdays.oauth import GOOGLE_TOKEN_URL
from birthdays.sessions import SessionTokenStore

TODAY = date(2026, 6, 15)
EVENTS_URL = f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/primary/events"


@dataclass
class FakeGoogle:
    """Programmable stand-in for Google's OAuth and Calendar endpoints."""

    token_response: httpx.Response = field(
        default_factory=lambda: httpx.Response(200, json={"access_token": "ya29.fresh"})
    )
    birthday_items: list[dict] = field(default_factory=list)
    general_items: list[dict] = field(default_factory=list)
    calendar_response: Callable[[httpx.Request], httpx.Response] | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == GOOGLE_TOKEN_URL:
            return self.token_response
        if url.startswith(EVENTS_URL):
            if self.calendar_response is not None:
                return self.calendar_response(request)
            if request.url.params.get("eventTypes") == "birthday":
                return httpx.Response(200, json={"items": self.birthday_items})
            return httpx.Response(200, json={"items": self.general_items})
        return httpx.Response(404)

    @property
    def calendar_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(EVENTS_URL)]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == GOOGLE_TOKEN_URL]


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        google=GoogleOAuthConfig(
            client_id="test-client-id.apps.googleusercontent.com",
            client_secret="test-client-secret",
            redirect_uri="http://localhost:3000/auth/google/callback",
        ),
    )


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def session_store() -> SessionTokenStore:
    return SessionTokenStore()


@pytest.fixture
def app(app_config, fake_google, session_store) -> FastAPI:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_google.handler))
    app = create_app(app_config, http_client=http_client, session_store=session_store)
    app.dependency_overrides[get_today] = lambda: TODAY
    return app


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="https://test",
        follow_redirects=False,
    ) as client:
        yield client
