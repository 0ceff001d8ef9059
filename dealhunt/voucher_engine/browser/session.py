from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from ..config import BROWSER_ARGS, USER_AGENT, EngineSettings
from .scripts import SCROLL_HALF_JS, SCROLL_TO_BOTTOM_JS

logger = logging.getLogger(__name__)


class BrowserLaunchError(RuntimeError):
    """Chromium could not be started. Fatal for the run."""


class NavigationError(RuntimeError):
    """The listing page did not load within the navigation timeout. Fatal for the run."""


@asynccontextmanager
async def open_page(settings: EngineSettings) -> AsyncIterator[Page]:
    """One headless Chromium, one context, one page for the whole run."""
    pw = await async_playwright().start()
    try:
        try:
            browser = await pw.chromium.launch(headless=settings.headless, args=BROWSER_ARGS)
        except PlaywrightError as e:
            raise BrowserLaunchError(f"chromium launch failed: {e}") from e

        try:
            context = await browser.new_context(user_agent=USER_AGENT, locale="vi-VN")
            page = await context.new_page()
            logger.info("browser ready headless=%s", settings.headless)
            yield page
        finally:
            await browser.close()
    finally:
        await pw.stop()


async def navigate(page, url: str, settings: EngineSettings) -> None:
    """
    Load `url` and give client-side rendering a fixed time to settle.

    No retry here: a timeout or network failure raises NavigationError.
    """
    logger.info("navigating to %s (timeout=%dms)", url, settings.navigation_timeout_ms)
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=settings.navigation_timeout_ms)
    except PlaywrightError as e:
        raise NavigationError(f"navigation to {url} failed: {str(e)[:300]}") from e

    await page.wait_for_timeout(settings.post_navigation_pause_ms)

    # nudge lazy-loaded sections into rendering
    await page.evaluate(SCROLL_HALF_JS)
    await page.wait_for_timeout(settings.scroll_pause_ms)
    await page.evaluate(SCROLL_TO_BOTTOM_JS)
    await page.wait_for_timeout(settings.scroll_pause_ms)
