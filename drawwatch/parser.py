from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple, TypeVar

from bs4 import BeautifulSoup
from bs4.element import Tag

from .dates import resolve_date
from .types import (
    NOT_AVAILABLE,
    PENDING,
    SPECIAL_BALL_RANGE,
    UNKNOWN_DATE,
    WHITE_BALL_COUNT,
    WHITE_BALL_RANGE,
    DrawRecord,
)

T = TypeVar("T")

# Each cascade is tried in order; the first selector whose matches pass the
# field's extractor wins.
NUMBERS_REGION = ("div#numbers div.card", "#numbers .card", "#numbers")
WHITE_BALLS = ("div.white-balls", ".item-powerball.white-balls", ".white-ball")
SPECIAL_BALL = ("div.powerball", ".item-powerball.powerball", ".powerball")
DRAW_DATE = ("h5.title-date", ".title-date", "time")
MULTIPLIER = ("span.multiplier", ".power-play .multiplier", ".multiplier")
RESULTS_LINK = ('a[href*="draw-result"]', 'a:-soup-contains("View Results")')

NEXT_DRAWING_REGION = ("div#next-drawing div.card", "#next-drawing")
NEXT_DRAW_DATE = ("h5.title-date", ".title-date")
NEXT_DRAW_JACKPOT = ("span.game-jackpot-number", ".game-jackpot-number")

DETAIL_JACKPOT = ("div.estimated-jackpot span:last-child", ".estimated-jackpot .value")
DETAIL_CASH_VALUE = ("div.cash-value span:last-child", ".cash-value .value")
DETAIL_WINNERS = (
    "div#winners .winners-group:first-of-type .winner-location",
    "#winners .winner-location",
)

NEXT_DATA_SELECTOR = "script#__NEXT_DATA__"

SummaryResult = Tuple[Optional[DrawRecord], Optional[str]]
DetailResult = Tuple[str, str, str]


def select_first(node: Tag, selectors: Sequence[str], extract: Callable[[list], Optional[T]]) -> Optional[T]:
    for selector in selectors:
        value = extract(node.select(selector))
        if value is not None:
            return value
    return None


def _first_tag(tags: list) -> Optional[Tag]:
    return tags[0] if tags else None


def _first_text(tags: list) -> Optional[str]:
    if not tags:
        return None
    text = tags[0].get_text(" ", strip=True)
    return text or None


def _to_int(text: Any) -> Optional[int]:
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return None


def _white_balls(values: Iterable[Any]) -> Optional[Tuple[int, ...]]:
    numbers = [n for n in (_to_int(v) for v in values) if n is not None and n in WHITE_BALL_RANGE]
    return tuple(numbers) if numbers else None


def _special_ball(value: Any) -> int:
    number = _to_int(value)
    return number if number is not None and number in SPECIAL_BALL_RANGE else 0


def _multiplier(text: Optional[str]) -> int:
    digits = re.sub(r"[^0-9]", "", text or "")
    return int(digits) if digits else 1


class RecordParser:
    """Extract draw records from rendered summary and detail pages."""

    def __init__(self, base_url: str, logger: Optional[logging.Logger] = None) -> None:
        self._base_url = base_url
        self._logger = logger or logging.getLogger("drawwatch.parser")

    def parse_summary(self, html: str) -> SummaryResult:
        soup = BeautifulSoup(html, "html.parser")
        card = select_first(soup, NUMBERS_REGION, _first_tag)
        if card is None:
            self._logger.warning("Numbers region not found; trying embedded page data")
            return self._summary_from_page_data(soup), None

        numbers = select_first(card, WHITE_BALLS, lambda tags: _white_balls(t.get_text(strip=True) for t in tags))
        special = _special_ball(select_first(card, SPECIAL_BALL, _first_text))
        draw_date_raw = select_first(card, DRAW_DATE, _first_text) or UNKNOWN_DATE

        if not self._essentials_ok(numbers, special, draw_date_raw):
            return None, None

        multiplier = _multiplier(select_first(card, MULTIPLIER, _first_text))
        next_raw, next_jackpot = self._next_drawing(soup)
        record = self._build(numbers, special, multiplier, draw_date_raw, next_raw, next_jackpot)
        self._logger.info(
            "Parsed summary: numbers=%s special=%s date=%r",
            list(record.numbers),
            record.special_number,
            record.draw_date_raw,
        )
        return record, self._detail_url(card)

    def parse_detail(self, html: str) -> DetailResult:
        soup = BeautifulSoup(html, "html.parser")
        jackpot = select_first(soup, DETAIL_JACKPOT, _first_text)
        cash_value = select_first(soup, DETAIL_CASH_VALUE, _first_text)
        winners = select_first(soup, DETAIL_WINNERS, _first_text)

        if jackpot is None or cash_value is None or winners is None:
            data = self._page_data(soup) or {}
            jackpot = jackpot or _clean(data.get("prizeAmount"))
            cash_value = cash_value or _clean(data.get("cashValue"))
            winners = winners or _clean(data.get("jackpotWinners"))

        result = (jackpot or PENDING, cash_value or PENDING, winners or NOT_AVAILABLE)
        self._logger.info("Parsed detail: jackpot=%r cash=%r winners=%r", *result)
        return result

    def _essentials_ok(self, numbers: Optional[Sequence[int]], special: int, draw_date_raw: str) -> bool:
        count = len(numbers) if numbers else 0
        if count != WHITE_BALL_COUNT or special == 0 or draw_date_raw == UNKNOWN_DATE:
            self._logger.error(
                "Missing essential data: numbers=%d special=%s date=%r", count, special, draw_date_raw
            )
            return False
        return True

    def _next_drawing(self, soup: BeautifulSoup) -> Tuple[str, str]:
        card = select_first(soup, NEXT_DRAWING_REGION, _first_tag)
        if card is None:
            self._logger.warning("Next drawing region not found")
            return NOT_AVAILABLE, NOT_AVAILABLE
        date_text = select_first(card, NEXT_DRAW_DATE, _first_text)
        amount = select_first(card, NEXT_DRAW_JACKPOT, _first_text)
        if not date_text or not amount:
            self._logger.warning("Next drawing date or jackpot missing")
            return NOT_AVAILABLE, NOT_AVAILABLE
        return date_text, amount

    def _detail_url(self, card: Tag) -> Optional[str]:
        link = select_first(card, RESULTS_LINK, _first_tag)
        href = link.get("href") if link is not None else None
        if not href:
            self._logger.warning("Results link not found; detail figures stay pending")
            return None
        if href.startswith("http"):
            return href
        return self._base_url.rstrip("/") + "/" + href.lstrip("/")

    def _page_data(self, soup: BeautifulSoup) -> Optional[Mapping[str, Any]]:
        script = soup.select_one(NEXT_DATA_SELECTOR)
        if script is None or not script.string:
            return None
        try:
            payload = json.loads(script.string)
        except json.JSONDecodeError as exc:
            self._logger.warning("Embedded page data is not valid JSON: %s", exc)
            return None
        data = (((payload or {}).get("props") or {}).get("pageProps") or {}).get("winningNumbersData")
        return data if isinstance(data, Mapping) else None

    def _summary_from_page_data(self, soup: BeautifulSoup) -> Optional[DrawRecord]:
        data = self._page_data(soup)
        if data is None:
            self._logger.error("Could not find the winning numbers region")
            return None

        raw_numbers = data.get("numbers")
        numbers = _white_balls(raw_numbers) if isinstance(raw_numbers, list) else None
        special = _special_ball(data.get("powerball"))
        draw_date_raw = _clean(data.get("drawDate")) or UNKNOWN_DATE
        if not self._essentials_ok(numbers, special, draw_date_raw):
            return None

        next_raw = _clean(data.get("nextDrawDate"))
        next_jackpot = _clean(data.get("nextDrawJackpot"))
        if not next_raw or not next_jackpot:
            next_raw, next_jackpot = NOT_AVAILABLE, NOT_AVAILABLE
        record = self._build(
            numbers,
            special,
            _multiplier(_clean(data.get("multiplier"))),
            draw_date_raw,
            next_raw,
            next_jackpot,
        )
        return record.with_financials(
            _clean(data.get("prizeAmount")) or PENDING,
            _clean(data.get("cashValue")) or PENDING,
            _clean(data.get("jackpotWinners")) or PENDING,
        )

    @staticmethod
    def _build(
        numbers: Sequence[int],
        special: int,
        multiplier: int,
        draw_date_raw: str,
        next_raw: str,
        next_jackpot: str,
    ) -> DrawRecord:
        drawn = resolve_date(draw_date_raw)
        if next_raw == NOT_AVAILABLE:
            next_display, next_date = NOT_AVAILABLE, None
        else:
            resolved_next = resolve_date(next_raw)
            next_display, next_date = resolved_next.display, resolved_next.date
        return DrawRecord(
            draw_date_raw=draw_date_raw,
            draw_date_display=drawn.display,
            draw_date=drawn.date,
            numbers=tuple(numbers),
            special_number=special,
            multiplier=multiplier,
            jackpot_amount=PENDING,
            cash_value=PENDING,
            jackpot_winners=PENDING,
            next_draw_date_raw=next_raw,
            next_draw_date_display=next_display,
            next_draw_date=next_date,
            next_draw_jackpot=next_jackpot,
        )


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None
