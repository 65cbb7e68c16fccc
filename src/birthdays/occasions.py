"""Occasion normalization — raw calendar events → ordered occasion list.

Pipeline:

1. Union birthday-typed events with general events whose subject looks
   like an anniversary.
2. Drop events without a date-only start (timed events are not occasions).
3. Classify each event as a birthday or an anniversary from its subject.
4. Canonicalize the subject into the person's (or couple's) display name.
5. Deduplicate on ``(name, month, day, kind)``; first occurrence wins.
6. Order by ``(month, day)``; ties keep input order.

The whole transformation is pure and request-scoped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from birthdays.calendar import MalformedEventError, RawCalendarEvent

logger = logging.getLogger(__name__)

_ANNIVERSARY_PATTERN = re.compile(r"anniv", re.IGNORECASE)

_BIRTHDAY_SUFFIX = re.compile(r"(?:['’]s\s+birthday|\s+birthday)\s*$", re.IGNORECASE)
_ANNIVERSARY_SUFFIX = re.compile(
    r"(?:['’]s\s+anniversary|\s+anniversary|anniv)\s*$",
    re.IGNORECASE,
)


class OccasionKind(StrEnum):
    """What an occasion celebrates."""

    birthday = "birthday"
    anniversary = "anniversary"


class Occasion(BaseModel):
    """A recurring yearly date for a named subject."""

    model_config = ConfigDict(frozen=True)

    name: str
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)
    kind: OccasionKind

    @property
    def key(self) -> tuple[str, int, int, OccasionKind]:
        return (self.name, self.month, self.day, self.kind)

    def next_occurrence(self, today: date) -> date:
        """Return the first date on or after *today* this occasion falls on.

        29 February is observed on 28 February in non-leap years.
        """
        candidate = _in_year(self.month, self.day, today.year)
        if candidate < today:
            candidate = _in_year(self.month, self.day, today.year + 1)
        return candidate


def _in_year(month: int, day: int, year: int) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        if month == 2 and day == 29:
            return date(year, 2, 28)
        raise


def is_anniversary(summary: str) -> bool:
    """Return True when *summary* names an anniversary."""
    return _ANNIVERSARY_PATTERN.search(summary) is not None


def classify(summary: str) -> OccasionKind:
    return OccasionKind.anniversary if is_anniversary(summary) else OccasionKind.birthday


def canonicalize_name(summary: str, kind: OccasionKind) -> str:
    """Strip the trailing occasion phrase from *summary*.

    ``"Jane's birthday"`` → ``"Jane"``; ``"10th anniversary"`` → ``"10th"``.
    Stripping repeats until nothing changes, so the result is a fixed
    point. If nothing would be left, the trimmed subject is returned as-is.
    """
    original = summary.strip()
    suffix = _ANNIVERSARY_SUFFIX if kind is OccasionKind.anniversary else _BIRTHDAY_SUFFIX

    name = original
    while True:
        stripped = suffix.sub("", name).strip()
        if stripped == name:
            break
        name = stripped

    return name or original


def to_occasion(event: RawCalendarEvent) -> Occasion:
    """Convert one raw event.

    Raises
    ------
    MalformedEventError
        If the event has no date-only start.
    """
    start = event.require_start_date()
    kind = classify(event.summary)
    return Occasion(
        name=canonicalize_name(event.summary, kind),
        month=start.month,
        day=start.day,
        kind=kind,
    )


def _sort_key(occasion: Occasion, today: date | None) -> tuple[int, int, int]:
    if today is None:
        return (0, occasion.month, occasion.day)
    # Passed dates rank after every date still ahead this year.
    passed = (occasion.month, occasion.day) < (today.month, today.day)
    return (1 if passed else 0, occasion.month, occasion.day)


def normalize_occasions(
    birthday_events: Iterable[RawCalendarEvent],
    general_events: Iterable[RawCalendarEvent],
    *,
    today: date | None = None,
) -> tuple[Occasion, ...]:
    """Turn the two raw event lists into one clean, ordered occasion list.

    Parameters
    ----------
    birthday_events:
        Events of Google's ``birthday`` type; all are candidates.
    general_events:
        Any events; only those whose subject looks like an anniversary
        are considered.
    today:
        When given, occasions that already passed this year are ordered
        after the upcoming ones. When omitted, plain calendar order.

    Returns
    -------
    tuple[Occasion, ...]
        Deduplicated, sorted occasions.
    """
    candidates = [
        *birthday_events,
        *(event for event in general_events if is_anniversary(event.summary)),
    ]

    seen: set[tuple[str, int, int, OccasionKind]] = set()
    occasions: list[Occasion] = []
    skipped = 0
    for event in candidates:
        try:
            occasion = to_occasion(event)
        except MalformedEventError as exc:
            skipped += 1
            logger.debug("Skipping event: %s", exc)
            continue
        if occasion.key in seen:
            continue
        seen.add(occasion.key)
        occasions.append(occasion)

    occasions.sort(key=lambda occasion: _sort_key(occasion, today))

    logger.debug(
        "Normalized %d candidate event(s) into %d occasion(s); %d skipped",
        len(candidates),
        len(occasions),
        skipped,
    )
    return tuple(occasions)
