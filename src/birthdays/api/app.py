"""Web front end — FastAPI application factory.

The app factory creates a FastAPI instance with:
- Shared collaborators on ``app.state`` (config, session store, OAuth
  client, calendar fetcher) around one ``httpx.AsyncClient``
- Lifespan handler closing the HTTP client on shutdown
- HTML error handlers
- Page and sign-in routers

Interactive API docs are disabled: every path outside the routers is a 404.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from birthdays.api.middleware import register_error_handlers
from birthdays.api.routers.auth import router as auth_router
from birthdays.api.routers.pages import router as pages_router
from birthdays.calendar import CalendarFetcher
from birthdays.config import AppConfig, load_config
from birthdays.oauth import GoogleOAuthClient
from birthdays.sessions import SessionTokenStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle for the shared HTTP client."""
    logger.info("Birthday app started (redirect_uri=%s)", app.state.config.google.redirect_uri)

    yield

    if app.state.owns_http_client:
        await app.state.http_client.aclose()
    logger.info("Birthday app stopped")


def create_app(
    config: AppConfig | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    session_store: SessionTokenStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    config:
        Application configuration. Defaults to ``load_config()`` from the
        process environment.
    http_client:
        Client used for every upstream call (token exchange and calendar
        reads). When omitted one is created and closed on shutdown.
    session_store:
        Session store to use; a fresh in-memory store by default.
    """
    if config is None:
        config = load_config()

    owns_http_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=config.http_timeout_s)

    app = FastAPI(
        title="Birthday App",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.router.redirect_slashes = False

    app.state.config = config
    app.state.http_client = http_client
    app.state.owns_http_client = owns_http_client
    app.state.session_store = session_store if session_store is not None else SessionTokenStore()
    app.state.oauth_client = GoogleOAuthClient(config.google, http_client)
    app.state.calendar_fetcher = CalendarFetcher(http_client)

    register_error_handlers(app)

    app.include_router(pages_router)
    app.include_router(auth_router)

    return app
