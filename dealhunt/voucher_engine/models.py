from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class Platform(str, enum.Enum):
    """Fixed platform enumeration; ids match the seeded `ecommerce` rows."""

    SHOPEE = "shopee"
    LAZADA = "lazada"
    TIKI = "tiki"
    SENDO = "sendo"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def seed_id(self) -> int:
        return _PLATFORM_SEED_IDS[self]


_PLATFORM_SEED_IDS = {
    Platform.SHOPEE: 1,
    Platform.LAZADA: 2,
    Platform.TIKI: 3,
    Platform.SENDO: 4,
}


class DiscountKind(str, enum.Enum):
    PERCENT = "percent"
    FIXED_AMOUNT = "fixed_amount"


@dataclass
class RawVoucherBundle:
    """
    Untyped field set scraped from one voucher card, BEFORE parsing.

    Every field is a plain string; a missing sub-element is an empty string.
    """
    supplier: str = ""
    supplier_logo: str = ""
    discount_text: str = ""
    minimum_order_text: str = ""
    availability_text: str = ""
    description_text: str = ""
    expiry_text: str = ""
    apply_link: str = ""
    banner_link: str = ""
    coupon_code: str = ""

    # position of the card on the page, for log correlation only
    index: int = 0


@dataclass
class VoucherRecord:
    """
    Canonical voucher shape handed to the reconciliation gateway.

    This is the unified representation BEFORE it is written into the `coupon` table.
    """
    platform: Platform
    supplier: str
    discount_kind: DiscountKind
    discount_value: float          # percent points or VND; never negative
    start_date: datetime           # observation timestamp (extraction time)

    min_order_value: Optional[float] = None
    available: Optional[float] = None   # percent remaining
    description: Optional[str] = None
    expiry_date: Optional[datetime] = None
    apply_link: Optional[str] = None
    banner_link: Optional[str] = None
    coupon_code: Optional[str] = None   # FixedAmount only

    # carried through from the page for display
    supplier_logo: Optional[str] = None
    discount_text: Optional[str] = None
    minimum_order_text: Optional[str] = None
    category: Optional[str] = None

    @property
    def is_percent(self) -> bool:
        return self.discount_kind is DiscountKind.PERCENT

    def log_ref(self) -> str:
        return f"supplier={self.supplier!r} discount={self.discount_text!r} link={(self.apply_link or '')[:80]!r}"
