"""Page endpoints — home, the occasions list, and the stylesheet."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse, RedirectResponse, Response

from birthdays.api.deps import (
    clear_session_cookie,
    get_calendar_fetcher,
    get_config,
    get_session_id,
    get_session_store,
    get_today,
)
from birthdays.api.middleware import internal_error_response
from birthdays.api.render import render_home, render_occasions
from birthdays.calendar import CalendarFetcher, UpstreamFetchError
from birthdays.config import AppConfig
from birthdays.occasions import normalize_occasions
from birthdays.sessions import SessionTokenStore

logger = logging.getLogger(__name__)

STYLESHEET_PATH = Path(__file__).resolve().parent.parent / "static" / "style.css"

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def home(
    store: SessionTokenStore = Depends(get_session_store),
    session_id: str | None = Depends(get_session_id),
) -> HTMLResponse:
    return HTMLResponse(render_home(authenticated=store.get(session_id) is not None))


@router.get("/birthdays")
async def occasions_page(
    config: AppConfig = Depends(get_config),
    store: SessionTokenStore = Depends(get_session_store),
    fetcher: CalendarFetcher = Depends(get_calendar_fetcher),
    session_id: str | None = Depends(get_session_id),
    today: date = Depends(get_today),
) -> Response:
    """Fetch this year's events and render the occasion list."""
    token = store.get(session_id)
    if token is None:
        return RedirectResponse(url="/", status_code=302)

    year = today.year
    failure: UpstreamFetchError | None = None
    try:
        # The first failure cancels the other fetch.
        async with asyncio.TaskGroup() as group:
            birthday_task = group.create_task(fetcher.fetch_birthday_events(token, year))
            general_task = group.create_task(fetcher.fetch_general_events(token, year))
    except* UpstreamFetchError as exc_group:
        errors = exc_group.exceptions
        failure = next((e for e in errors if e.unauthorized), errors[0])

    if failure is not None:
        if failure.unauthorized:
            # Token revoked or expired; there is no refresh flow.
            logger.info("Google rejected the session token; signing out")
            store.clear(session_id)
            response = RedirectResponse(url="/", status_code=302)
            clear_session_cookie(response)
            return response
        logger.warning("Google Calendar fetch failed: %s", failure)
        return internal_error_response(
            "We could not load your calendar from Google. Please try again."
        )

    occasions = normalize_occasions(
        birthday_task.result(),
        general_task.result(),
        today=today if config.wrap_past_dates else None,
    )
    logger.info("Rendering %d occasion(s) for %d", len(occasions), year)
    return HTMLResponse(render_occasions(occasions, year=year, today=today))


@router.get("/style.css")
async def stylesheet() -> Response:
    return FileResponse(STYLESHEET_PATH, media_type="text/css")
