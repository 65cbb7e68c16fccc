"""FastAPI dependencies for the web layer.

Long-lived collaborators (config, session store, OAuth client, calendar
fetcher) live on ``app.state`` and are set by ``create_app()``. The
session cookie is read here; writing it is done by the routers through
``set_session_cookie`` / ``clear_session_cookie``.
"""

from __future__ import annotations

from datetime import date

from fastapi import Request, Response

from birthdays.calendar import CalendarFetcher
from birthdays.config import AppConfig
from birthdays.core.logging import set_session_context
from birthdays.oauth import GoogleOAuthClient
from birthdays.sessions import SessionTokenStore

SESSION_COOKIE = "accessToken"


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_session_store(request: Request) -> SessionTokenStore:
    return request.app.state.session_store


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client


def get_calendar_fetcher(request: Request) -> CalendarFetcher:
    return request.app.state.calendar_fetcher


def get_session_id(request: Request) -> str | None:
    """Return the session id from the request cookie, if any."""
    session_id = request.cookies.get(SESSION_COOKIE) or None
    set_session_context(session_id)
    return session_id


def get_today() -> date:
    """Today's date; overridden in tests."""
    return date.today()


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        session_id,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        "",
        max_age=0,
        path="/",
        secure=True,
        httponly=True,
        samesite="lax",
    )
