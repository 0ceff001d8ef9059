"""
Promo overlay dismissal.

The aggregator shows an element-ui dialog (image banner + close buttons) on
load and sometimes again after "load more". We try a fixed chain of methods,
cheapest and most natural first, and stop at the first one that works:

  image close icon -> header close button -> header close icon
  -> backdrop click -> force-hide via style

Failing every method is NOT an error: extraction proceeds regardless.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from ..config import (
    POPUP_DIALOG_SELECTOR,
    POPUP_HEADER_BUTTON_SELECTOR,
    POPUP_HEADER_ICON_SELECTOR,
    POPUP_IMAGE_CLOSE_SELECTOR,
    POPUP_ROOT_SELECTOR,
)
from .scripts import BACKDROP_CLICK_JS, FORCE_HIDE_JS, IS_VISIBLE_JS

logger = logging.getLogger(__name__)

POPUP_ABSENT = "absent"
POPUP_NOT_DISMISSED = "not_dismissed"

_CLICK_TIMEOUT_MS = 2_000

PopupMethod = Callable[[object], Awaitable[bool]]


async def _click_if_present(page, selector: str) -> bool:
    # closed dialogs stay in the DOM; only a visible control belongs to the live overlay
    for handle in await page.query_selector_all(selector):
        if await handle.evaluate(IS_VISIBLE_JS):
            await handle.click(timeout=_CLICK_TIMEOUT_MS)
            return True
    return False


async def click_image_close(page) -> bool:
    return await _click_if_present(page, POPUP_IMAGE_CLOSE_SELECTOR)


async def click_header_button(page) -> bool:
    return await _click_if_present(page, POPUP_HEADER_BUTTON_SELECTOR)


async def click_header_icon(page) -> bool:
    return await _click_if_present(page, POPUP_HEADER_ICON_SELECTOR)


async def click_backdrop(page) -> bool:
    return bool(await page.evaluate(BACKDROP_CLICK_JS, [POPUP_ROOT_SELECTOR, POPUP_DIALOG_SELECTOR]))


async def force_hide(page) -> bool:
    return bool(await page.evaluate(FORCE_HIDE_JS, POPUP_ROOT_SELECTOR))


DISMISS_CHAIN: List[Tuple[str, PopupMethod]] = [
    ("image_close", click_image_close),
    ("header_button", click_header_button),
    ("header_icon", click_header_icon),
    ("backdrop", click_backdrop),
    ("force_hide", force_hide),
]


async def popup_visible(page) -> bool:
    # element-ui keeps closed dialogs in the DOM as display:none
    for root in await page.query_selector_all(POPUP_ROOT_SELECTOR):
        try:
            if await root.evaluate(IS_VISIBLE_JS):
                return True
        except Exception:
            continue
    return False


async def dismiss_popup(
    page,
    *,
    grace_ms: int = 1_500,
    chain: Optional[Sequence[Tuple[str, PopupMethod]]] = None,
) -> str:
    """
    Returns the name of the method that cleared the overlay, POPUP_ABSENT when
    there was nothing to clear, or POPUP_NOT_DISMISSED when every method failed.
    """
    await page.wait_for_timeout(grace_ms)

    try:
        if not await popup_visible(page):
            return POPUP_ABSENT
    except Exception as e:
        # unknown state: run the chain anyway, every method is harmless on a clean page
        logger.info("popup visibility check failed (%s: %s); trying dismissal anyway", type(e).__name__, str(e)[:200])

    for name, method in chain or DISMISS_CHAIN:
        try:
            if await method(page):
                logger.info("popup dismissed via %s", name)
                return name
        except Exception as e:
            logger.debug("popup method %s failed: %s: %s", name, type(e).__name__, str(e)[:200])

    logger.warning("popup could not be dismissed; continuing with whatever DOM is readable")
    return POPUP_NOT_DISMISSED
