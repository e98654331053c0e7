from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional, Sequence

from .types import UNKNOWN_DATE

# Tried in order; the first pattern that parses wins.
DATE_PATTERNS: Sequence[str] = (
    "%a, %b %d, %Y",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S",
    "%A, %B %d, %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y-%m-%d",
    "%m/%d/%Y",
)

DISPLAY_FORMAT = "%a, %b %d, %Y"
URL_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class ResolvedDate:
    display: str
    date: Optional[dt.date]
    url_form: Optional[str]


def resolve_date(text: Optional[str]) -> ResolvedDate:
    """Parse loosely formatted draw-date text.

    Returns the canonical display string, the calendar date and a sortable
    ``YYYY-MM-DD`` form. Text that matches no pattern is returned unchanged
    as ``display`` with no date; this never raises.
    """
    if text is None or not text.strip():
        return ResolvedDate(display=UNKNOWN_DATE, date=None, url_form=None)

    cleaned = " ".join(text.split())
    for pattern in DATE_PATTERNS:
        try:
            parsed = dt.datetime.strptime(cleaned, pattern)
        except ValueError:
            continue
        return ResolvedDate(
            display=parsed.strftime(DISPLAY_FORMAT),
            date=parsed.date(),
            url_form=parsed.strftime(URL_FORMAT),
        )
    return ResolvedDate(display=text, date=None, url_form=None)
