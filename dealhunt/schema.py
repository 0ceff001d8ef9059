from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Ecommerce(Base):
    """Platform lookup table (Shopee, Lazada, Tiki, Sendo)."""

    __tablename__ = "ecommerce"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True)

    coupons: Mapped[List["Coupon"]] = relationship(back_populates="ecommerce")


class Coupon(Base):
    __tablename__ = "coupon"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    platform: Mapped[int] = mapped_column(ForeignKey("ecommerce.id"), nullable=False)

    supplier: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    supplier_logo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # raw text as shown on the page, e.g. "20%" / "50K"
    discount_text: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_percent_discount: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    discount_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    coupon_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    minimum_order_text: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    min_cart_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    available: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    apply_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    banner_link: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # first observation; never overwritten by reconciliation
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expired_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, server_default=func.now())

    ecommerce: Mapped["Ecommerce"] = relationship(back_populates="coupons")

    __table_args__ = (
        Index("ix_coupon_apply_link", "apply_link"),
        Index("ix_coupon_composite", "supplier", "discount_value", "expired_date", "platform"),
    )
