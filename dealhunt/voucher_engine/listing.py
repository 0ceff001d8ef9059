"""
Read projection consumed by the web application.

Flat voucher list with the platform name resolved and an `is_active` flag
derived from expiry vs. now. No pagination cursor at this layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from dealhunt.schema import Coupon, Ecommerce

from .models import Platform


@dataclass
class VoucherView:
    id: int
    platform_name: str
    category: Optional[str]
    supplier: Optional[str]
    discount_text: Optional[str]
    is_percent_discount: bool
    discount_value: float
    coupon_code: Optional[str]
    min_cart_value: Optional[float]
    available: Optional[float]
    description: Optional[str]
    apply_link: Optional[str]
    banner_link: Optional[str]
    start_date: datetime
    expired_date: Optional[datetime]
    is_active: bool


def list_vouchers(
    session: Session,
    *,
    platform: Optional[Platform] = None,
    category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[VoucherView]:
    now = now or datetime.now()

    stmt = select(Coupon, Ecommerce.name).join(Ecommerce, Coupon.platform == Ecommerce.id)
    if platform is not None:
        stmt = stmt.where(Ecommerce.name == platform.display_name)
    if category:
        stmt = stmt.where(Coupon.category == category)
    stmt = stmt.order_by(Coupon.start_date.desc(), Coupon.id.desc())

    out: List[VoucherView] = []
    for row, platform_name in session.execute(stmt).all():
        out.append(
            VoucherView(
                id=row.id,
                platform_name=platform_name,
                category=row.category,
                supplier=row.supplier,
                discount_text=row.discount_text,
                is_percent_discount=bool(row.is_percent_discount),
                discount_value=float(row.discount_value or 0.0),
                coupon_code=row.coupon_code,
                min_cart_value=row.min_cart_value,
                available=row.available,
                description=row.description,
                apply_link=row.apply_link,
                banner_link=row.banner_link,
                start_date=row.start_date,
                expired_date=row.expired_date,
                is_active=row.expired_date is None or row.expired_date >= now,
            )
        )
    return out
