import asyncio
import datetime as dt
from typing import Dict, List, Optional, Tuple

from drawwatch.renderer import PageRenderer
from drawwatch.types import DrawRecord, RenderFailure, RenderResult


def make_record(**overrides) -> DrawRecord:
    values = dict(
        draw_date_raw="Wed, Aug 27, 2025",
        draw_date_display="Wed, Aug 27, 2025",
        draw_date=dt.date(2025, 8, 27),
        numbers=(9, 12, 22, 41, 61),
        special_number=25,
        multiplier=4,
        next_draw_date_raw="Sat, Aug 30, 2025",
        next_draw_date_display="Sat, Aug 30, 2025",
        next_draw_date=dt.date(2025, 8, 30),
        next_draw_jackpot="$1.1 Billion",
    )
    values.update(overrides)
    return DrawRecord(**values)


def complete(record: DrawRecord) -> DrawRecord:
    return record.with_financials("$20 Million", "$9.2 Million", "None")


class FakeRenderer(PageRenderer):
    """Serves canned HTML per URL; unknown URLs time out."""

    def __init__(self, pages: Dict[str, str], delay: float = 0.0) -> None:
        self._pages = pages
        self._delay = delay
        self.calls: List[Tuple[str, bool]] = []
        self.cancelled: List[str] = []

    async def render(self, url: str, is_detail_page: bool = False) -> RenderResult:
        self.calls.append((url, is_detail_page))
        if self._delay:
            try:
                await asyncio.sleep(self._delay)
            except asyncio.CancelledError:
                self.cancelled.append(url)
                raise
        html: Optional[str] = self._pages.get(url)
        if html is None:
            return RenderResult.failed(url, RenderFailure.TIMEOUT, "fake timeout")
        return RenderResult.success(url, html)
