"""
Field parsing for scraped voucher cards.

Everything here is pure: raw strings in, typed values out, never raises.

Two date policies live side by side and are NOT unified:
- full dates (dd/MM/yyyy, dd-MM-yyyy, optional time) -> None when unparseable
- short dates (dd/MM, no year) -> "one month from now" when unparseable
"""

from __future__ import annotations

import re
import urllib.parse
from datetime import datetime
from typing import Optional, Tuple

from dateutil import parser as dtparser
from dateutil.relativedelta import relativedelta

from .config import CATEGORY_ALL_SHOP, CATEGORY_SPECIFIC
from .models import DiscountKind, Platform, RawVoucherBundle, VoucherRecord

_PERCENT_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*%")
_THOUSANDS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*[kK]")
_NUMBER_RE = re.compile(r"\d+(?:[.,]\d+)?")
_NON_DIGIT_RE = re.compile(r"\D")

_FULL_DATE_FORMATS = (
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
)
_FULL_DATE_RE = re.compile(r"\d{1,2}[/-]\d{1,2}[/-](?:\d{4}|\d{2})\b(?:\s+\d{1,2}:\d{2}(?::\d{2})?)?")
_SHORT_DATE_RE = re.compile(r"(\d{1,2})\s*/\s*(\d{1,2})")


def _to_float(num: str) -> float:
    return float(num.replace(",", "."))


def _leading_number(text: str, rx: re.Pattern) -> Optional[float]:
    m = rx.search(text)
    if m:
        return _to_float(m.group(1))
    m = _NUMBER_RE.search(text)
    if m:
        return _to_float(m.group(0))
    return None


def parse_discount(text: Optional[str]) -> Tuple[DiscountKind, float]:
    """
    "20%" -> (PERCENT, 20.0); "50K" -> (FIXED_AMOUNT, 50000.0);
    anything else -> (FIXED_AMOUNT, digits or 0.0).
    """
    raw = (text or "").strip()

    if "%" in raw:
        value = _leading_number(raw, _PERCENT_RE)
        return DiscountKind.PERCENT, max(0.0, value or 0.0)

    if "k" in raw.lower():
        value = _leading_number(raw, _THOUSANDS_RE)
        return DiscountKind.FIXED_AMOUNT, max(0.0, (value or 0.0) * 1000)

    digits = _NON_DIGIT_RE.sub("", raw)
    return DiscountKind.FIXED_AMOUNT, float(digits) if digits else 0.0


def parse_money(text: Optional[str]) -> Optional[float]:
    digits = _NON_DIGIT_RE.sub("", text or "")
    if not digits:
        return None
    return float(digits)


def parse_availability(text: Optional[str]) -> Optional[float]:
    # "Còn lại 45%" -> 45.0
    return parse_money(text)


def parse_full_date(text: Optional[str]) -> Optional[datetime]:
    s = (text or "").strip()
    if not s:
        return None

    for fmt in _FULL_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    # best-effort: anything dateutil understands, day-first like the source site
    try:
        return dtparser.parse(s, dayfirst=True)
    except (ValueError, OverflowError):
        return None


def parse_short_date(text: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Parse a year-less "dd/MM" expiry.

    The current year is assumed; a date already behind `now` (by calendar day)
    rolls into next year. Absent or unparseable input yields now + 1 month.
    """
    now = now or datetime.now()
    fallback = now + relativedelta(months=1)

    m = _SHORT_DATE_RE.search(text or "")
    if not m:
        return fallback

    day, month = int(m.group(1)), int(m.group(2))
    try:
        candidate = datetime(now.year, month, day)
        if candidate.date() < now.date():
            candidate = candidate.replace(year=now.year + 1)
    except ValueError:
        # 31/02, 29/02 rolling into a non-leap year, ...
        return fallback
    return candidate


def parse_expiry(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Route expiry text to the right policy:
    - contains a dated dd/MM/yyyy, dd-MM-yyyy or dd/MM/yy -> full-date path
    - contains a bare dd/MM -> short-date path (never None)
    - anything else -> full-date path (best-effort, None on failure)
    """
    s = (text or "").strip()
    if not s:
        return None

    m = _FULL_DATE_RE.search(s)
    if m:
        return parse_full_date(m.group(0))

    if _SHORT_DATE_RE.search(s):
        return parse_short_date(s, now=now)

    return parse_full_date(s)


def extract_apply_link(raw: Optional[str]) -> Optional[str]:
    """
    Unwrap aggregator redirect links.

    https://go.example/?origin_link=https%3A%2F%2Fshopee.vn%2Fm%2Fabc -> https://shopee.vn/m/abc
    Anything without `origin_link` is returned unchanged.
    """
    s = (raw or "").strip()
    if not s:
        return None
    try:
        parsed = urllib.parse.urlparse(s)
        origin = urllib.parse.parse_qs(parsed.query).get("origin_link")
        if origin and origin[0].strip():
            return origin[0].strip()
        return s
    except Exception:
        return None


def _category_for(supplier: str) -> str:
    return CATEGORY_ALL_SHOP if CATEGORY_ALL_SHOP in supplier else CATEGORY_SPECIFIC


def build_record(bundle: RawVoucherBundle, platform: Platform, now: Optional[datetime] = None) -> VoucherRecord:
    now = now or datetime.now()
    kind, value = parse_discount(bundle.discount_text)
    supplier = (bundle.supplier or "").strip()

    code = (bundle.coupon_code or "").strip() or None
    if kind is not DiscountKind.FIXED_AMOUNT:
        code = None

    return VoucherRecord(
        platform=platform,
        supplier=supplier,
        discount_kind=kind,
        discount_value=value,
        start_date=now,
        min_order_value=parse_money(bundle.minimum_order_text),
        available=parse_availability(bundle.availability_text),
        description=(bundle.description_text or "").strip() or None,
        expiry_date=parse_expiry(bundle.expiry_text, now=now),
        apply_link=extract_apply_link(bundle.apply_link),
        banner_link=(bundle.banner_link or "").strip() or None,
        coupon_code=code,
        supplier_logo=(bundle.supplier_logo or "").strip() or None,
        discount_text=(bundle.discount_text or "").strip() or None,
        minimum_order_text=(bundle.minimum_order_text or "").strip() or None,
        category=_category_for(supplier),
    )
