from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

PENDING = "Counting.."
NOT_AVAILABLE = "N/A"
UNKNOWN_DATE = "Unknown Date"

WHITE_BALL_RANGE = range(1, 70)
SPECIAL_BALL_RANGE = range(1, 27)
WHITE_BALL_COUNT = 5

FINANCIAL_FIELDS = ("jackpot_amount", "cash_value", "jackpot_winners")
FETCH_FAILED_MESSAGE = "Unable to fetch winning numbers."


class FetchError(RuntimeError):
    """A refresh attempt that produced no usable record."""

    def __init__(self, cause: str) -> None:
        super().__init__(FETCH_FAILED_MESSAGE)
        self.cause = cause

    def __str__(self) -> str:
        return f"{FETCH_FAILED_MESSAGE} ({self.cause})"


class StorageError(RuntimeError):
    pass


class RenderFailure(Enum):
    TIMEOUT = "timeout"
    NAVIGATION_ERROR = "navigation_error"


@dataclass(frozen=True)
class RenderResult:
    """Serialized DOM of a rendered page, or why there is none."""

    url: str
    html: Optional[str] = None
    failure: Optional[RenderFailure] = None
    detail: str = ""

    def __post_init__(self) -> None:
        if (self.html is None) == (self.failure is None):
            raise ValueError("RenderResult requires exactly one of html or failure")

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, url: str, html: str) -> "RenderResult":
        return cls(url=url, html=html)

    @classmethod
    def failed(cls, url: str, failure: RenderFailure, detail: str = "") -> "RenderResult":
        return cls(url=url, failure=failure, detail=detail)


def _date_to_str(value: Optional[dt.date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _date_from_str(value: Optional[str]) -> Optional[dt.date]:
    return dt.date.fromisoformat(value) if value else None


@dataclass(frozen=True)
class DrawRecord:
    """One drawing's result as scraped from the summary and detail pages."""

    draw_date_raw: str
    draw_date_display: str
    draw_date: Optional[dt.date]
    numbers: Tuple[int, ...]
    special_number: int
    multiplier: int = 1
    jackpot_amount: str = PENDING
    cash_value: str = PENDING
    jackpot_winners: str = PENDING
    next_draw_date_raw: str = NOT_AVAILABLE
    next_draw_date_display: str = NOT_AVAILABLE
    next_draw_date: Optional[dt.date] = None
    next_draw_jackpot: str = NOT_AVAILABLE

    def __post_init__(self) -> None:
        numbers = tuple(int(n) for n in self.numbers)
        if len(numbers) != WHITE_BALL_COUNT:
            raise ValueError(
                f"DrawRecord expects exactly {WHITE_BALL_COUNT} numbers, got {len(numbers)}"
            )
        object.__setattr__(self, "numbers", numbers)

    def pending_fields(self) -> Tuple[str, ...]:
        return tuple(name for name in FINANCIAL_FIELDS if getattr(self, name) == PENDING)

    @property
    def is_complete(self) -> bool:
        return not self.pending_fields()

    @property
    def is_valid(self) -> bool:
        raw = self.draw_date_raw.strip()
        return (
            len(self.numbers) == WHITE_BALL_COUNT
            and self.special_number > 0
            and raw != ""
            and raw.lower() not in {"unknown", UNKNOWN_DATE.lower()}
        )

    def with_financials(self, jackpot_amount: str, cash_value: str, jackpot_winners: str) -> "DrawRecord":
        return replace(
            self,
            jackpot_amount=jackpot_amount,
            cash_value=cash_value,
            jackpot_winners=jackpot_winners,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name in ("draw_date", "next_draw_date"):
                value = _date_to_str(value)
            elif item.name == "numbers":
                value = list(value)
            payload[item.name] = value
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DrawRecord":
        kwargs = {item.name: payload[item.name] for item in fields(cls)}
        kwargs["draw_date"] = _date_from_str(kwargs["draw_date"])
        kwargs["next_draw_date"] = _date_from_str(kwargs["next_draw_date"])
        kwargs["numbers"] = tuple(kwargs["numbers"])
        return cls(**kwargs)


@dataclass(frozen=True)
class CacheEntry:
    record: DrawRecord
    fetched_at: dt.datetime


@dataclass(frozen=True)
class RefreshOutcome:
    """Terminal result of a refresh: exactly one of `record` or `error` is set."""

    record: Optional[DrawRecord] = None
    error: Optional[FetchError] = None
    from_cache: bool = False
    cache_write_error: Optional[StorageError] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if (self.record is None) == (self.error is None):
            raise ValueError("RefreshOutcome requires exactly one of record or error")

    @property
    def ok(self) -> bool:
        return self.record is not None
