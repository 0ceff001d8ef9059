"""
Matching keys used by the reconciliation gateway.

Two strategies, picked explicitly by the caller (never inferred):

- identity_link: the unwrapped apply link. Only usable when non-empty.
- composite_value: (supplier, discount value, expiry date, platform).
  Tolerates volatile anchor URLs; two genuinely distinct vouchers that agree on
  all four fields will be merged into one row, so prefer identity_link when the
  page exposes stable links. The reverse also happens: an unparseable short
  expiry falls back to "now + 1 month", which moves on every run, so such a
  voucher never matches its earlier row and is inserted again each run.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional, Tuple

from .models import Platform, VoucherRecord


class MatchStrategy(str, enum.Enum):
    IDENTITY_LINK = "identity_link"
    COMPOSITE_VALUE = "composite_value"


def resolve_strategy(name: Optional[str]) -> MatchStrategy:
    """Map a config string onto a MatchStrategy; unknown names are an error."""
    raw = (name or MatchStrategy.IDENTITY_LINK.value).strip().lower()
    try:
        return MatchStrategy(raw)
    except ValueError:
        valid = ", ".join(s.value for s in MatchStrategy)
        raise ValueError(f"unknown match strategy {name!r} (expected one of: {valid})") from None


def identity_key(record: VoucherRecord) -> Optional[str]:
    link = (record.apply_link or "").strip()
    return link or None


def composite_key(record: VoucherRecord) -> Tuple[str, float, Optional[datetime], Platform]:
    return (
        (record.supplier or "").strip(),
        float(record.discount_value),
        record.expiry_date,
        record.platform,
    )
