"""
Voucher card extraction.

- Container selectors are tried in priority order; the first one with at least
  one visible card (outside any modal) wins.
- Each field is read independently and best-effort: a missing sub-element is an
  empty string, never an exception that loses the whole card.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from ..config import (
    APPLY_LINK_SUBSTR,
    AVAILABILITY_LABEL,
    BANNER_LINK_SELECTOR,
    CODE_SELECTOR,
    CONTAINER_SELECTORS,
    DISCOUNT_SELECTOR,
    EXPIRY_CONTAINER_SELECTOR,
    LABELLED_ROW_SELECTOR,
    MIN_ORDER_LABEL,
    MODAL_ANCESTOR_SELECTOR,
    NOTE_SELECTOR,
    NOTE_TRAILING_CTA,
    SUPPLIER_LOGO_SELECTOR,
    SUPPLIER_SELECTORS,
)
from ..models import Platform, RawVoucherBundle
from .scripts import IS_LISTED_JS

logger = logging.getLogger(__name__)

_CODE_RE = re.compile(r"(?:Mã|Code|MA)\s*:\s*([A-Z0-9]+)", re.I)
_TRAILING_CTA_RE = re.compile(r"\s*" + re.escape(NOTE_TRAILING_CTA) + r"\s*$")


def _squash(text: Optional[str]) -> str:
    return " ".join((text or "").split())


async def _text(el, selector: str) -> str:
    try:
        node = await el.query_selector(selector)
        if node is None:
            return ""
        return _squash(await node.text_content())
    except Exception:
        return ""


async def _attr(el, selector: str, name: str) -> str:
    try:
        node = await el.query_selector(selector)
        if node is None:
            return ""
        return (await node.get_attribute(name) or "").strip()
    except Exception:
        return ""


async def _first_text(el, selectors: Sequence[str]) -> str:
    for selector in selectors:
        value = await _text(el, selector)
        if value:
            return value
    return ""


async def _labelled_text(el, label: str) -> str:
    """Text after `label` in the first labelled row that contains it."""
    rx = re.compile(re.escape(label) + r"\s*:?\s*(.+)")
    try:
        rows = await el.query_selector_all(LABELLED_ROW_SELECTOR)
    except Exception:
        return ""
    for row in rows:
        try:
            content = _squash(await row.text_content())
        except Exception:
            continue
        if label not in content:
            continue
        m = rx.search(content)
        return m.group(1).strip() if m else ""
    return ""


async def _expiry_text(el) -> str:
    try:
        container = await el.query_selector(EXPIRY_CONTAINER_SELECTOR)
        if container is None:
            return ""
        spans = await container.query_selector_all("span")
        # first span is the "HSD:" label
        if len(spans) > 1:
            return _squash(await spans[-1].text_content())
    except Exception:
        pass
    return ""


async def _note_text(el) -> str:
    return _TRAILING_CTA_RE.sub("", await _text(el, NOTE_SELECTOR))


async def _apply_link(el, platform: Platform) -> str:
    substr = APPLY_LINK_SUBSTR.get(platform.value, platform.value)
    link = await _attr(el, f"a.italic.underline[href*='{substr}']", "href")
    if not link:
        link = await _attr(el, f"a[href*='{substr}']", "href")
    return link


async def _coupon_code(el, discount_text: str) -> str:
    if "%" in discount_text:
        return ""

    code = await _text(el, CODE_SELECTOR)
    if code:
        m = _CODE_RE.search(code)
        return m.group(1) if m else code

    try:
        full = _squash(await el.text_content())
    except Exception:
        return ""
    m = _CODE_RE.search(full)
    return m.group(1) if m else ""


async def extract_bundle(el, platform: Platform, index: int = 0) -> RawVoucherBundle:
    discount_text = await _text(el, DISCOUNT_SELECTOR)
    apply_link = await _apply_link(el, platform)

    return RawVoucherBundle(
        supplier=await _first_text(el, SUPPLIER_SELECTORS),
        supplier_logo=await _attr(el, SUPPLIER_LOGO_SELECTOR, "src"),
        discount_text=discount_text,
        minimum_order_text=await _labelled_text(el, MIN_ORDER_LABEL),
        availability_text=await _labelled_text(el, AVAILABILITY_LABEL),
        description_text=await _note_text(el),
        expiry_text=await _expiry_text(el),
        apply_link=apply_link,
        banner_link=await _attr(el, BANNER_LINK_SELECTOR, "href") or apply_link,
        coupon_code=await _coupon_code(el, discount_text),
        index=index,
    )


async def _listed_elements(page, selector: str) -> list:
    visible = []
    for handle in await page.query_selector_all(selector):
        try:
            if await handle.evaluate(IS_LISTED_JS, MODAL_ANCESTOR_SELECTOR):
                visible.append(handle)
        except Exception:
            continue
    return visible


async def find_voucher_elements(page, selectors: Optional[Sequence[str]] = None) -> Tuple[Optional[str], list]:
    for selector in selectors or CONTAINER_SELECTORS:
        try:
            elements = await _listed_elements(page, selector)
        except Exception as e:
            logger.debug("container selector %r failed: %s", selector, e)
            continue
        if elements:
            logger.info("found %d visible voucher cards via %r", len(elements), selector)
            return selector, elements
    return None, []


async def extract_bundles(
    page,
    platform: Platform,
    *,
    max_items: Optional[int] = None,
    selectors: Optional[Sequence[str]] = None,
) -> Tuple[Optional[str], List[RawVoucherBundle]]:
    """Returns (matched selector, bundles); (None, []) when no card was found."""
    selector, elements = await find_voucher_elements(page, selectors)
    if max_items:
        elements = elements[:max_items]

    bundles: List[RawVoucherBundle] = []
    for i, el in enumerate(elements):
        try:
            bundles.append(await extract_bundle(el, platform, index=i))
        except Exception as e:
            # detached handle etc.; the field readers themselves never raise
            logger.warning("card #%d unreadable: %s: %s", i, type(e).__name__, str(e)[:200])
    return selector, bundles
