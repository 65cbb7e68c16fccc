"""HTML rendering for the web pages.

Markup only — every dynamic value passes through ``html.escape``.
"""

from __future__ import annotations

import html
from collections.abc import Sequence
from datetime import date

from birthdays.occasions import Occasion, OccasionKind

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_KIND_ICONS = {
    OccasionKind.birthday: "\U0001f382",
    OccasionKind.anniversary: "\U0001f48d",
}


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '  <meta charset="utf-8">\n'
        '  <meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"  <title>{html.escape(title)}</title>\n"
        '  <link rel="stylesheet" href="/style.css">\n'
        "</head>\n"
        "<body>\n"
        '<main class="container">\n'
        f"{body}\n"
        "</main>\n"
        "</body>\n"
        "</html>\n"
    )


def render_home(*, authenticated: bool) -> str:
    if authenticated:
        body = (
            "<h1>\U0001f382 Birthday App</h1>\n"
            "<p>You are signed in with Google.</p>\n"
            '<p><a class="button" href="/birthdays">See upcoming birthdays</a></p>\n'
            '<p><a class="muted" href="/logout">Sign out</a></p>'
        )
    else:
        body = (
            "<h1>\U0001f382 Birthday App</h1>\n"
            "<p>See the birthdays and anniversaries from your Google Calendar.</p>\n"
            '<p><a class="button" href="/login">Sign in with Google</a></p>'
        )
    return _page("Birthday App", body)


def format_day(month: int, day: int) -> str:
    """``(3, 5)`` → ``"March 5"``."""
    return f"{_MONTH_NAMES[month - 1]} {day}"


def render_occasions(
    occasions: Sequence[Occasion],
    *,
    year: int,
    today: date | None = None,
) -> str:
    if not occasions:
        items = '<p class="muted">No birthdays or anniversaries found this year.</p>'
    else:
        rows = []
        for occasion in occasions:
            css_class = f"occasion {occasion.kind.value}"
            if today is not None and (occasion.month, occasion.day) == (today.month, today.day):
                css_class += " today"
            rows.append(
                f'  <li class="{css_class}">'
                f'<span class="icon">{_KIND_ICONS[occasion.kind]}</span> '
                f'<span class="name">{html.escape(occasion.name)}</span> '
                f'<span class="date">{format_day(occasion.month, occasion.day)}</span>'
                "</li>"
            )
        items = '<ul class="occasions">\n' + "\n".join(rows) + "\n</ul>"

    body = (
        f"<h1>\U0001f382 Birthdays &amp; anniversaries {year}</h1>\n"
        f"{items}\n"
        '<p><a href="/">Home</a> · <a class="muted" href="/logout">Sign out</a></p>'
    )
    return _page(f"Birthdays {year}", body)


def render_error(title: str, message: str) -> str:
    body = (
        f"<h1>{html.escape(title)}</h1>\n"
        f'<p class="error">{html.escape(message)}</p>\n'
        '<p><a href="/">Back to start</a></p>'
    )
    return _page(title, body)
