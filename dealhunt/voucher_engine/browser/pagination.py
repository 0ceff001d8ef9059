from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import LOAD_MORE_SELECTORS, EngineSettings
from .popups import dismiss_popup
from .scripts import IS_VISIBLE_JS, SCROLL_TO_BOTTOM_JS

logger = logging.getLogger(__name__)

_CLICK_TIMEOUT_MS = 5_000


@dataclass
class PaginationResult:
    clicks: int = 0
    exhausted: bool = False
    stop_reason: str = ""


async def find_load_more(page, selectors: Optional[Sequence[str]] = None):
    for selector in selectors or LOAD_MORE_SELECTORS:
        try:
            handle = await page.query_selector(selector)
        except Exception as e:
            logger.debug("load-more selector %r rejected: %s", selector, e)
            continue
        if handle is not None:
            return handle
    return None


async def paginate(
    page,
    settings: EngineSettings,
    *,
    selectors: Optional[Sequence[str]] = None,
) -> PaginationResult:
    """
    Click "load more" until it disappears, stops being visible, errors, or
    settings.max_pages clicks have been made. Never raises.
    """
    result = PaginationResult()

    for _ in range(settings.max_pages):
        try:
            await dismiss_popup(page, grace_ms=settings.popup_grace_ms)

            button = await find_load_more(page, selectors)
            if button is None:
                result.exhausted = True
                result.stop_reason = "not_found"
                break

            if not await button.evaluate(IS_VISIBLE_JS):
                result.exhausted = True
                result.stop_reason = "hidden"
                break

            await button.scroll_into_view_if_needed()
            await page.wait_for_timeout(settings.pre_click_pause_ms)
            await button.click(timeout=_CLICK_TIMEOUT_MS)
            await page.wait_for_timeout(settings.post_click_pause_ms)
            await page.evaluate(SCROLL_TO_BOTTOM_JS)
            await page.wait_for_timeout(settings.scroll_pause_ms)
            result.clicks += 1

        except Exception as e:
            result.exhausted = True
            result.stop_reason = "error"
            logger.info("pagination stopped after %d clicks: %s: %s", result.clicks, type(e).__name__, str(e)[:200])
            break
    else:
        result.stop_reason = "max_pages"
        logger.warning(
            "pagination hit safety bound (%d clicks); extracting what is loaded so far",
            settings.max_pages,
        )

    logger.info("pagination done clicks=%d reason=%s", result.clicks, result.stop_reason)
    return result
