"""Tests for the page endpoints: home, occasions, stylesheet, unknown paths."""

from __future__ import annotations

import asyncio
import dataclasses

import httpx
import pytest

from birthdays.api.deps import SESSION_COOKIE, get_calendar_fetcher
from birthdays.calendar import UpstreamFetchError

pytestmark = pytest.mark.unit


def _cookie_header(session_id: str) -> dict[str, str]:
    return {"Cookie": f"{SESSION_COOKIE}={session_id}"}


@pytest.fixture
def signed_in(session_store) -> dict[str, str]:
    session_store.set("s1", "ya29.token")
    return _cookie_header("s1")


class TestHome:
    async def test_signed_out_shows_sign_in(self, client):
        resp = await client.get("/")

        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert 'href="/login"' in resp.text
        assert 'href="/birthdays"' not in resp.text

    async def test_unknown_session_is_signed_out(self, client):
        resp = await client.get("/", headers=_cookie_header("stale"))
        assert 'href="/login"' in resp.text

    async def test_signed_in_links_to_occasions(self, client, signed_in):
        resp = await client.get("/", headers=signed_in)

        assert resp.status_code == 200
        assert 'href="/birthdays"' in resp.text
        assert 'href="/logout"' in resp.text


class TestOccasionsPage:
    async def test_signed_out_redirects_without_fetching(self, client, fake_google):
        resp = await client.get("/birthdays")

        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert fake_google.requests == []

    async def test_renders_normalized_occasions(self, client, fake_google, signed_in):
        fake_google.birthday_items = [
            {"summary": "Jane's birthday", "start": {"date": "2026-03-05"}},
            {"summary": "Jane's birthday", "start": {"date": "2026-03-05"}},
            {"summary": "Ann birthday", "start": {"date": "2026-01-20"}},
        ]
        fake_google.general_items = [
            {"summary": "10th anniversary", "start": {"date": "2026-07-01"}},
            {"summary": "Dentist", "start": {"date": "2026-02-01"}},
            {"summary": "Anniversary dinner", "start": {"dateTime": "2026-07-01T19:00:00Z"}},
        ]

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.status_code == 200
        body = resp.text
        assert body.count('class="name">Jane<') == 1
        assert "Dentist" not in body
        assert "dinner" not in body
        ann, jane, tenth = (
            body.index(">Ann<"),
            body.index(">Jane<"),
            body.index(">10th<"),
        )
        assert ann < jane < tenth
        assert "March 5" in body
        assert "July 1" in body

    async def test_fetches_both_collections_for_current_year(
        self, client, fake_google, signed_in
    ):
        await client.get("/birthdays", headers=signed_in)

        requests = fake_google.calendar_requests
        assert len(requests) == 2
        assert {r.url.params.get("eventTypes") for r in requests} == {"birthday", None}
        for request in requests:
            assert request.headers["Authorization"] == "Bearer ya29.token"
            assert request.url.params["timeMin"] == "2026-01-01T00:00:00Z"

    async def test_names_are_escaped(self, client, fake_google, signed_in):
        fake_google.birthday_items = [
            {"summary": "<b>Eve</b>'s birthday", "start": {"date": "2026-04-01"}},
        ]

        resp = await client.get("/birthdays", headers=signed_in)

        assert "<b>Eve</b>" not in resp.text
        assert "&lt;b&gt;Eve&lt;/b&gt;" in resp.text

    async def test_empty_calendar(self, client, signed_in):
        resp = await client.get("/birthdays", headers=signed_in)
        assert resp.status_code == 200
        assert "No birthdays" in resp.text

    async def test_upstream_failure_is_an_error_page(self, client, fake_google, signed_in):
        fake_google.calendar_response = lambda request: httpx.Response(503, text="down")

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.status_code == 500
        assert "text/html" in resp.headers["content-type"]

    async def test_invalid_json_is_an_error_page(self, client, fake_google, signed_in):
        fake_google.calendar_response = lambda request: httpx.Response(200, content=b"nope")

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.status_code == 500

    async def test_failed_fetch_cancels_the_other(self, app, client, session_store, signed_in):
        class StalledFetcher:
            def __init__(self):
                self.general_cancelled = False

            async def fetch_birthday_events(self, token, year):
                await asyncio.sleep(0)
                raise UpstreamFetchError("Invalid Credentials", status_code=401)

            async def fetch_general_events(self, token, year):
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    self.general_cancelled = True
                    raise

        fetcher = StalledFetcher()
        app.dependency_overrides[get_calendar_fetcher] = lambda: fetcher

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.status_code == 302
        assert fetcher.general_cancelled is True
        assert session_store.get("s1") is None

    async def test_revoked_token_signs_out(self, client, fake_google, session_store, signed_in):
        fake_google.calendar_response = lambda request: httpx.Response(
            401, json={"error": {"code": 401, "message": "Invalid Credentials"}}
        )

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.status_code == 302
        assert resp.headers["location"] == "/"
        assert session_store.get("s1") is None
        assert "max-age=0" in resp.headers["set-cookie"].lower()


class TestWrapPastDates:
    @pytest.fixture
    def app_config(self, app_config):
        return dataclasses.replace(app_config, wrap_past_dates=True)

    async def test_passed_dates_move_to_the_end(self, client, fake_google, signed_in):
        # Fixed today is 2026-06-15.
        fake_google.birthday_items = [
            {"summary": "Ann birthday", "start": {"date": "2026-01-20"}},
            {"summary": "Zed birthday", "start": {"date": "2026-09-01"}},
        ]

        resp = await client.get("/birthdays", headers=signed_in)

        assert resp.text.index(">Zed<") < resp.text.index(">Ann<")


class TestStylesheet:
    async def test_served_as_css(self, client):
        resp = await client.get("/style.css")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/css")
        assert "body" in resp.text


class TestUnknownPaths:
    @pytest.mark.parametrize("path", ["/nope", "/docs", "/openapi.json", "/birthdays/"])
    async def test_404(self, client, path):
        resp = await client.get(path)

        assert resp.status_code == 404
        assert "text/html" in resp.headers["content-type"]
