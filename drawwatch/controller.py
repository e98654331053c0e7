from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import replace
from typing import Callable, Dict, Optional

from .cache import CacheStore
from .config import WatchSettings
from .parser import RecordParser
from .renderer import PageRenderer
from .types import PENDING, CacheEntry, DrawRecord, FetchError, RefreshOutcome, StorageError

DisplayCallback = Callable[[DrawRecord], None]


def is_stale(record: DrawRecord, today: dt.date) -> bool:
    """A cached record needs a refresh once its draw is in the past and the
    next drawing is due. Unknown dates count as due."""
    drawn_before_today = record.draw_date is None or record.draw_date < today
    next_draw_due = record.next_draw_date is None or record.next_draw_date <= today
    return drawn_before_today and next_draw_due


def merge_records(old: Optional[DrawRecord], new: DrawRecord) -> DrawRecord:
    """Fill pending financial fields of `new` from `old` for the same draw.

    Draws are matched on the raw date text only.
    """
    pending = new.pending_fields()
    if old is None or not pending or old.draw_date_raw != new.draw_date_raw:
        return new
    updates = {name: getattr(old, name) for name in pending if getattr(old, name) != PENDING}
    if not updates:
        return new
    return replace(new, **updates)


class RefreshController:
    def __init__(
        self,
        settings: WatchSettings,
        renderer: PageRenderer,
        store: CacheStore,
        parser: Optional[RecordParser] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
        on_display: Optional[DisplayCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._renderer = renderer
        self._store = store
        self._parser = parser or RecordParser(settings.base_url)
        self._clock = clock
        self._on_display = on_display
        self._logger = logger or logging.getLogger("drawwatch.controller")
        self._current: Optional[DrawRecord] = None
        self._inflight: Optional[asyncio.Task] = None
        self._waiters: Dict[asyncio.Task, int] = {}

    @property
    def current(self) -> Optional[DrawRecord]:
        return self._current

    async def check_cache_and_refresh(self) -> RefreshOutcome:
        entry = self._store.read()
        if entry is None:
            self._logger.info("No cached record; fetching.")
            return await self._refresh()

        self._display(entry.record)
        if not self._needs_refresh(entry):
            return RefreshOutcome(record=entry.record, from_cache=True)
        return await self._refresh()

    async def force_refresh(self) -> RefreshOutcome:
        return await self._refresh()

    def persist_current(self, record: Optional[DrawRecord] = None) -> bool:
        record = record or self._current
        if record is None:
            return False
        try:
            self._store.write(record, self._clock())
        except StorageError as exc:
            self._logger.error("Could not persist displayed record: %s", exc)
            return False
        return True

    async def run_forever(self, interval: Optional[int] = None) -> None:
        interval = interval or self._settings.poll_interval_seconds
        self._logger.info("Watch loop started; poll interval=%s", interval)
        try:
            while True:
                try:
                    outcome = await self.check_cache_and_refresh()
                    if outcome.error is not None:
                        self._logger.warning("%s", outcome.error)
                except Exception as exc:
                    self._logger.exception("Refresh iteration failed: %s", exc)
                await asyncio.sleep(interval)
        finally:
            self.persist_current()

    def _needs_refresh(self, entry: CacheEntry) -> bool:
        now = self._clock()
        if not is_stale(entry.record, now.date()):
            self._logger.info("Cached draw %r is current; skipping fetch.", entry.record.draw_date_raw)
            return False
        cooldown = self._settings.refresh_cooldown_seconds
        if cooldown > 0 and now - entry.fetched_at < dt.timedelta(seconds=cooldown):
            self._logger.info("Cache fetched at %s is inside the %ss cooldown.", entry.fetched_at, cooldown)
            return False
        self._logger.info("Cached draw %r is stale; refreshing.", entry.record.draw_date_raw)
        return True

    async def _refresh(self) -> RefreshOutcome:
        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch())
            task.add_done_callback(self._forget_inflight)
            self._inflight = task
            self._waiters[task] = 0
        else:
            self._logger.debug("Joining in-flight fetch.")

        # Callers wait through a shield so one abandoned caller does not
        # cancel the fetch for the others; the last one to leave cancels it.
        self._waiters[task] += 1
        try:
            return await asyncio.shield(task)
        finally:
            self._waiters[task] -= 1
            if not self._waiters[task]:
                del self._waiters[task]
                if not task.done():
                    self._logger.info("No callers left waiting; cancelling fetch.")
                    task.cancel()

    def _forget_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _fetch(self) -> RefreshOutcome:
        base_url = self._settings.base_url
        summary = await self._renderer.render(base_url, is_detail_page=False)
        if not summary.ok:
            return self._fail(f"summary page render {summary.failure.value}: {summary.detail}")

        record, detail_url = self._parser.parse_summary(summary.html)
        if record is None:
            return self._fail("summary page is missing numbers, special number or draw date")

        if detail_url:
            detail = await self._renderer.render(detail_url, is_detail_page=True)
            if detail.ok:
                record = record.with_financials(*self._parser.parse_detail(detail.html))
            else:
                self._logger.warning(
                    "Detail page %s render %s; keeping summary-only record.",
                    detail_url,
                    detail.failure.value,
                )

        previous = self._current
        if previous is None:
            cached = self._store.read()
            previous = cached.record if cached is not None else None
        merged = merge_records(previous, record)
        if merged is not record:
            self._logger.info("Filled pending fields for %r from the previous record.", merged.draw_date_raw)
        return self._persist(merged)

    def _persist(self, record: DrawRecord) -> RefreshOutcome:
        write_error: Optional[StorageError] = None
        try:
            self._store.write(record, self._clock())
        except StorageError as exc:
            self._logger.error("Cache write failed: %s", exc)
            write_error = exc
        self._display(record)
        if not record.is_complete:
            self._logger.info(
                "Record for %r still pending: %s", record.draw_date_raw, ", ".join(record.pending_fields())
            )
        return RefreshOutcome(record=record, cache_write_error=write_error)

    def _fail(self, cause: str) -> RefreshOutcome:
        error = FetchError(cause)
        self._logger.error("%s", error)
        return RefreshOutcome(error=error)

    def _display(self, record: DrawRecord) -> None:
        self._current = record
        if self._on_display is not None:
            self._on_display(record)
