"""
Configuration for the Voucher Engine.

This module controls:
- Which platform sources are enabled and where their listing pages live.
- The CSS selectors / labels the browser layer relies on.
- Env-driven operational knobs (timeouts, pauses, bounds), via load_settings().

NOTE:
Selectors change whenever the aggregator ships a redesign. Keep them here so a
fix is a one-file change.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

SOURCES_ENABLED: Dict[str, bool] = {
    "shopee": True,
    # Listing pages exist but the card markup has not been verified yet
    "lazada": False,
    "tiki": False,
    "sendo": False,
}

SOURCE_URLS: Dict[str, str] = {
    "shopee": "https://bloggiamgia.vn/shopee",
    "lazada": "https://bloggiamgia.vn/lazada",
    "tiki": "https://bloggiamgia.vn/tiki",
    "sendo": "https://bloggiamgia.vn/sendo",
}

# Substring an "apply" anchor href must contain for a given platform.
APPLY_LINK_SUBSTR: Dict[str, str] = {
    "shopee": "shopee",
    "lazada": "lazada",
    "tiki": "tiki",
    "sendo": "sendo",
}

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

BROWSER_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

# -----------------------------
# Popup overlay (element-ui dialog)
# -----------------------------
POPUP_ROOT_SELECTOR = ".el-dialog__wrapper"
POPUP_DIALOG_SELECTOR = ".el-dialog"
POPUP_IMAGE_CLOSE_SELECTOR = ".el-dialog__wrapper .el-dialog__body .icon-close, .el-dialog__wrapper .close-popup"
POPUP_HEADER_BUTTON_SELECTOR = ".el-dialog__wrapper .el-dialog__headerbtn"
POPUP_HEADER_ICON_SELECTOR = ".el-dialog__close"

# -----------------------------
# Pagination
# -----------------------------
LOAD_MORE_TEXT = "Xem thêm Voucher"
LOAD_MORE_SELECTORS: List[str] = [
    f"div:has(svg) >> text={LOAD_MORE_TEXT}",
    f"button:has-text('{LOAD_MORE_TEXT}')",
    f"text={LOAD_MORE_TEXT}",
    "button:has-text('Xem thêm')",
]

# -----------------------------
# Voucher cards
# -----------------------------
CONTAINER_SELECTORS: List[str] = [
    ".ticket-wrap",
    ".ticket",
    "[class*='ticket']",
    ".item-voucher",
    ".voucher-item",
    ".deal-item",
    ".coupon-item",
]

# Ancestors that mean "this card lives inside a modal, skip it".
MODAL_ANCESTOR_SELECTOR = ".el-dialog__wrapper, .modal, [style*='display:none'], [style*='display: none']"

SUPPLIER_SELECTORS: List[str] = [
    ".logo-supplier .font-semibold",
    ".mini-title-supplier span",
]
SUPPLIER_LOGO_SELECTOR = ".logo-supplier img, .mini-title-supplier img"
DISCOUNT_SELECTOR = ".font-bold[style*='color'], .text-lg.font-bold, .text-2xl.font-bold"
LABELLED_ROW_SELECTOR = ".text-xs.mb-1"
MIN_ORDER_LABEL = "ĐH tối thiểu:"
AVAILABILITY_LABEL = "Còn lại"
NOTE_SELECTOR = ".italic.text-xs.text-left"
NOTE_TRAILING_CTA = "Xem chi tiết"
EXPIRY_CONTAINER_SELECTOR = ".expried-date"
BANNER_LINK_SELECTOR = r"a.bg-\[\#FF9900\]"
CODE_SELECTOR = ".code, .coupon-code, [class*='code']"

CATEGORY_ALL_SHOP = "Toàn Sàn"
CATEGORY_SPECIFIC = "Danh Mục Cụ Thể"


# -----------------------------
# Env helpers
# -----------------------------
def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)) or str(default))
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class EngineSettings:
    headless: bool = True
    navigation_timeout_ms: int = 15_000
    post_navigation_pause_ms: int = 3_000
    scroll_pause_ms: int = 1_000
    popup_grace_ms: int = 1_500
    max_pages: int = 50
    pre_click_pause_ms: int = 500
    post_click_pause_ms: int = 3_000
    max_items: Optional[int] = None
    match_strategy: str = "identity_link"
    debug_dir: str = "debug"
    screenshot_on_success: bool = False


def load_settings() -> EngineSettings:
    """Build EngineSettings from VOUCHER_ENGINE_* env vars."""
    max_items = _env_int("VOUCHER_ENGINE_MAX_ITEMS", 0)
    return EngineSettings(
        headless=_env_bool("VOUCHER_ENGINE_HEADLESS", True),
        navigation_timeout_ms=_env_int("VOUCHER_ENGINE_NAV_TIMEOUT_MS", 15_000),
        post_navigation_pause_ms=_env_int("VOUCHER_ENGINE_POST_NAV_PAUSE_MS", 3_000),
        scroll_pause_ms=_env_int("VOUCHER_ENGINE_SCROLL_PAUSE_MS", 1_000),
        popup_grace_ms=_env_int("VOUCHER_ENGINE_POPUP_GRACE_MS", 1_500),
        max_pages=_env_int("VOUCHER_ENGINE_MAX_PAGES", 50),
        pre_click_pause_ms=_env_int("VOUCHER_ENGINE_PRE_CLICK_PAUSE_MS", 500),
        post_click_pause_ms=_env_int("VOUCHER_ENGINE_POST_CLICK_PAUSE_MS", 3_000),
        max_items=max_items if max_items > 0 else None,
        match_strategy=_env_str("VOUCHER_ENGINE_MATCH_STRATEGY", "identity_link"),
        debug_dir=_env_str("VOUCHER_ENGINE_DEBUG_DIR", "debug"),
        screenshot_on_success=_env_bool("VOUCHER_ENGINE_SCREENSHOT_ON_SUCCESS", False),
    )
