from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Route, async_playwright

from ..config import RenderSettings
from ..types import RenderFailure, RenderResult
from .base import PageRenderer, RenderAttempt


async def _skip_images(route: Route) -> None:
    if route.request.resource_type == "image":
        await route.abort()
    else:
        await route.continue_()


class PlaywrightPageRenderer(PageRenderer):
    """Render pages in a fresh headless Chromium per call.

    Nothing is pooled: each render launches its own browser, and the browser
    is closed on every exit path including timeout and cancellation.
    """

    def __init__(self, settings: RenderSettings, logger: Optional[logging.Logger] = None) -> None:
        self._settings = settings
        self._logger = logger or logging.getLogger("drawwatch.renderer")

    async def render(self, url: str, is_detail_page: bool = False) -> RenderResult:
        settings = self._settings
        timeout = settings.timeout_for(is_detail_page)
        attempt = RenderAttempt(url, timeout, settings.settle_ms / 1000.0, logger=self._logger)
        self._logger.info("Rendering %s (timeout=%ss, detail=%s)", url, timeout, is_detail_page)

        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=settings.headless, timeout=timeout * 1000
                )
                try:
                    context_kwargs: dict[str, Any] = {"java_script_enabled": True}
                    if settings.user_agent:
                        context_kwargs["user_agent"] = settings.user_agent
                    context = await browser.new_context(**context_kwargs)
                    if settings.block_images:
                        await context.route("**/*", _skip_images)
                    page = await context.new_page()
                    result = await attempt.run(page)
                finally:
                    await self._close_browser(browser)
        except PlaywrightError as exc:
            self._logger.error("Browser failure while rendering %s: %s", url, exc)
            return RenderResult.failed(url, RenderFailure.NAVIGATION_ERROR, str(exc))

        if result.ok:
            self._logger.info("Rendered %s (%d chars)", url, len(result.html or ""))
        return result

    async def _close_browser(self, browser: Any) -> None:
        try:
            await browser.close()
        except PlaywrightError as exc:
            self._logger.debug("Ignoring error while closing browser: %s", exc)
