"""Google Calendar reads for occasion detection.

Two collections are read from the user's primary calendar for a single
calendar year:

- birthday-typed events (Google's dedicated ``birthday`` event type), and
- all events, capped at ``GENERAL_EVENTS_MAX_RESULTS``, to be post-filtered
  for anniversary-like subjects by the occasion normalizer.

Result pages are followed through ``nextPageToken``. Requests are
authenticated with the session's bearer token. Failures raise
``UpstreamFetchError``; nothing is retried.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from birthdays.config import DEFAULT_HTTP_TIMEOUT_S
from birthdays.errors import BirthdaysError

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
PRIMARY_CALENDAR_ID = "primary"
GENERAL_EVENTS_MAX_RESULTS = 2500


class UpstreamFetchError(BirthdaysError):
    """Raised when a Google Calendar read fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

    @property
    def unauthorized(self) -> bool:
        """True when Google rejected the bearer token itself."""
        return self.status_code == 401


class MalformedEventError(BirthdaysError):
    """Raised when an event cannot become an occasion (no date-only start)."""


class RawCalendarEvent(BaseModel):
    """A provider event reduced to the fields occasion detection needs.

    ``start_date`` is set only for all-day events; timed events carry
    ``start_date_time`` instead.
    """

    model_config = ConfigDict(frozen=True)

    summary: str = ""
    start_date: date | None = None
    start_date_time: datetime | None = None
    event_type: str | None = None

    @classmethod
    def from_google(cls, payload: dict[str, Any]) -> RawCalendarEvent:
        """Build from a Google Calendar ``Event`` resource.

        Invalid or missing start values are tolerated here and surface later
        as ``MalformedEventError`` from ``require_start_date()``.
        """
        summary = payload.get("summary")
        start = payload.get("start")
        if not isinstance(start, dict):
            start = {}
        event_type = payload.get("eventType")
        return cls(
            summary=summary.strip() if isinstance(summary, str) else "",
            start_date=_parse_google_date(start.get("date")),
            start_date_time=_parse_google_datetime(start.get("dateTime")),
            event_type=event_type if isinstance(event_type, str) else None,
        )

    def require_start_date(self) -> date:
        """Return the date-only start or raise ``MalformedEventError``."""
        if self.start_date is None:
            raise MalformedEventError(f"Event {self.summary!r} has no date-only start")
        return self.start_date


def _parse_google_date(value: Any) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        logger.debug("Ignoring invalid all-day start date %r", value)
        return None


def _parse_google_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = f"{normalized[:-1]}+00:00"
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def year_window(year: int) -> tuple[str, str]:
    """Return RFC3339 ``(timeMin, timeMax)`` bounds covering *year*."""
    return f"{year:04d}-01-01T00:00:00Z", f"{year:04d}-12-31T23:59:59Z"


def _safe_google_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error_payload, str) and error_payload.strip():
            return " ".join(error_payload.split())[:200]
    return "Request failed without an error payload"


class CalendarFetcher:
    """Authenticated reads against the Google Calendar events-list endpoint.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``. When omitted the fetcher creates and
        owns one; call ``aclose()`` when done.
    calendar_id:
        Calendar to read; Google's ``primary`` alias by default.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        calendar_id: str = PRIMARY_CALENDAR_ID,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
    ) -> None:
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._calendar_id = calendar_id

    async def fetch_birthday_events(self, token: str, year: int) -> list[RawCalendarEvent]:
        """Return every birthday-typed event of *year*, recurring ones expanded."""
        time_min, time_max = year_window(year)
        params: dict[str, Any] = {
            "eventTypes": "birthday",
            "singleEvents": "true",
            "timeMin": time_min,
            "timeMax": time_max,
        }
        return await self._list_events(token, params, label="birthday")

    async def fetch_general_events(self, token: str, year: int) -> list[RawCalendarEvent]:
        """Return all events of *year*, capped at ``GENERAL_EVENTS_MAX_RESULTS``."""
        time_min, time_max = year_window(year)
        params: dict[str, Any] = {
            "singleEvents": "true",
            "timeMin": time_min,
            "timeMax": time_max,
            "maxResults": GENERAL_EVENTS_MAX_RESULTS,
        }
        return await self._list_events(
            token, params, label="general", limit=GENERAL_EVENTS_MAX_RESULTS
        )

    async def _list_events(
        self,
        token: str,
        params: dict[str, Any],
        *,
        label: str,
        limit: int | None = None,
    ) -> list[RawCalendarEvent]:
        """Read every page of the events list, stopping early at *limit* events."""
        url = f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/{self._calendar_id}/events"
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        params = dict(params)

        events: list[RawCalendarEvent] = []
        pages = 0
        while True:
            payload = await self._get_page(url, params, headers)
            pages += 1
            events.extend(
                RawCalendarEvent.from_google(item)
                for item in payload["items"]
                if isinstance(item, dict)
            )
            if limit is not None and len(events) >= limit:
                del events[limit:]
                break

            next_page_token = payload.get("nextPageToken")
            if not isinstance(next_page_token, str) or not next_page_token.strip():
                break
            params["pageToken"] = next_page_token

        logger.debug("Fetched %d %s event(s) in %d page(s)", len(events), label, pages)
        return events

    async def _get_page(
        self,
        url: str,
        params: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        try:
            response = await self._http_client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Google Calendar request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamFetchError(
                f"Google Calendar API request failed ({response.status_code}): "
                f"{_safe_google_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFetchError("Google Calendar API returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise UpstreamFetchError("Google Calendar API returned an unexpected JSON payload shape")

        if not isinstance(payload.get("items"), list):
            raise UpstreamFetchError("Google Calendar events response missing items array")

        return payload

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()
