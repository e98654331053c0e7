from __future__ import annotations

import abc
import asyncio
import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError

from ..types import RenderFailure, RenderResult

OUTCOME_EXTRACT = "extract"
OUTCOME_TIMEOUT = "timeout"
OUTCOME_NAVIGATION = "navigation"
OUTCOME_CANCELLED = "cancelled"


class PageRenderer(abc.ABC):
    """Produces the fully rendered document text of a page."""

    @abc.abstractmethod
    async def render(self, url: str, is_detail_page: bool = False) -> RenderResult:
        """Render `url` and return its serialized DOM.

        Implementations report timeouts and navigation errors as a failed
        `RenderResult` rather than raising.
        """


class RenderLatch:
    """Single-resolution flag shared by the settle and timeout timers.

    The first caller of `claim` wins; every later claim is a no-op.
    """

    def __init__(self) -> None:
        self.winner: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.winner is not None

    def claim(self, source: str) -> bool:
        if self.winner is not None:
            return False
        self.winner = source
        return True


class RenderAttempt:
    """One render of one URL on a page owned exclusively by this attempt.

    Every load signal restarts a settle timer; when the page stays quiet for
    `settle_seconds` the DOM is serialized. A timeout timer races against it
    and whichever claims the latch first decides the result.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float,
        settle_seconds: float,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.settle_seconds = settle_seconds
        self.latch = RenderLatch()
        self._logger = logger or logging.getLogger("drawwatch.renderer")
        self._page: Any = None
        self._result: Optional[asyncio.Future] = None
        self._settle_handle: Optional[asyncio.TimerHandle] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._navigation: Optional[asyncio.Task] = None
        self._extraction: Optional[asyncio.Task] = None

    async def run(self, page: Any) -> RenderResult:
        loop = asyncio.get_running_loop()
        self._page = page
        self._result = loop.create_future()
        page.on("load", self._on_load)
        self._timeout_handle = loop.call_later(self.timeout_seconds, self._on_timeout)
        self._navigation = asyncio.ensure_future(self._navigate())
        try:
            return await self._result
        finally:
            if self.latch.claim(OUTCOME_CANCELLED):
                self._logger.info("Render of %s cancelled", self.url)
            self._teardown()

    def _on_load(self, *_: Any) -> None:
        if self.latch.resolved:
            return
        self._logger.debug("Load signal for %s; waiting %.3fs to settle", self.url, self.settle_seconds)
        if self._settle_handle is not None:
            self._settle_handle.cancel()
        loop = asyncio.get_running_loop()
        self._settle_handle = loop.call_later(self.settle_seconds, self._on_settled)

    def _on_settled(self) -> None:
        if not self.latch.claim(OUTCOME_EXTRACT):
            return
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
        self._logger.debug("Page %s settled; extracting document", self.url)
        self._extraction = asyncio.ensure_future(self._extract())

    def _on_timeout(self) -> None:
        if not self.latch.claim(OUTCOME_TIMEOUT):
            return
        if self._settle_handle is not None:
            self._settle_handle.cancel()
        self._logger.error("Render timed out after %ss for %s", self.timeout_seconds, self.url)
        self._finish(
            RenderResult.failed(self.url, RenderFailure.TIMEOUT, f"no settled load within {self.timeout_seconds}s")
        )

    async def _navigate(self) -> None:
        try:
            await self._page.goto(self.url, wait_until="commit", timeout=0)
        except PlaywrightError as exc:
            if self.latch.claim(OUTCOME_NAVIGATION):
                self._logger.error("Navigation to %s failed: %s", self.url, exc)
                self._finish(RenderResult.failed(self.url, RenderFailure.NAVIGATION_ERROR, str(exc)))

    async def _extract(self) -> None:
        try:
            html = await asyncio.wait_for(self._page.content(), timeout=self.timeout_seconds)
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            self._logger.error("Document extraction failed for %s: %s", self.url, exc)
            detail = str(exc) or "extraction timed out"
            self._finish(RenderResult.failed(self.url, RenderFailure.NAVIGATION_ERROR, detail))
            return
        self._finish(RenderResult.success(self.url, html))

    def _finish(self, result: RenderResult) -> None:
        if self._result is not None and not self._result.done():
            self._result.set_result(result)

    def _teardown(self) -> None:
        for handle in (self._settle_handle, self._timeout_handle):
            if handle is not None:
                handle.cancel()
        for task in (self._navigation, self._extraction):
            if task is not None and not task.done():
                task.cancel()
        remove = getattr(self._page, "remove_listener", None)
        if remove is not None:
            remove("load", self._on_load)
