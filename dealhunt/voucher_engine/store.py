"""
Persistence boundary for the Voucher Engine.

This module defines:
- VoucherStore: interface the reconciliation gateway talks to.
- SqlVoucherStore: SQLAlchemy implementation over the `coupon` / `ecommerce` tables.

Every write is its own unit of work: the gateway calls commit() after each
record, so a crash mid-batch keeps earlier upserts durable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from dealhunt.schema import Coupon, Ecommerce

from .dedupe import composite_key
from .models import Platform, VoucherRecord


class VoucherStore:
    """
    Base interface for voucher persistence.

    Rows returned by the find_* methods are opaque to callers; they are only
    ever handed back to update().
    """

    def platform_id(self, platform: Platform) -> int:
        raise NotImplementedError("VoucherStore.platform_id() must be implemented by subclasses")

    def seed_platforms(self) -> int:
        raise NotImplementedError("VoucherStore.seed_platforms() must be implemented by subclasses")

    def find_by_apply_link(self, apply_link: str) -> Optional[Any]:
        raise NotImplementedError("VoucherStore.find_by_apply_link() must be implemented by subclasses")

    def find_by_composite(self, record: VoucherRecord) -> Optional[Any]:
        raise NotImplementedError("VoucherStore.find_by_composite() must be implemented by subclasses")

    def insert(self, record: VoucherRecord) -> Any:
        raise NotImplementedError("VoucherStore.insert() must be implemented by subclasses")

    def update(self, existing: Any, record: VoucherRecord) -> Any:
        raise NotImplementedError("VoucherStore.update() must be implemented by subclasses")

    def bulk_save(self, rows: Iterable[Any]) -> None:
        raise NotImplementedError("VoucherStore.bulk_save() must be implemented by subclasses")

    def commit(self) -> None:
        raise NotImplementedError("VoucherStore.commit() must be implemented by subclasses")

    def rollback(self) -> None:
        raise NotImplementedError("VoucherStore.rollback() must be implemented by subclasses")


def _apply_mutable_fields(row: Coupon, record: VoucherRecord) -> None:
    row.supplier = record.supplier
    row.supplier_logo = record.supplier_logo
    row.discount_text = record.discount_text
    row.is_percent_discount = record.is_percent
    row.discount_value = record.discount_value
    row.coupon_code = record.coupon_code
    row.minimum_order_text = record.minimum_order_text
    row.min_cart_value = record.min_order_value
    row.available = record.available
    row.description = record.description
    row.note = record.description[:1000] if record.description else None
    row.category = record.category
    row.banner_link = record.banner_link


class SqlVoucherStore(VoucherStore):
    def __init__(self, session: Session) -> None:
        self.session = session
        self._platform_ids: Dict[Platform, int] = {}

    def platform_id(self, platform: Platform) -> int:
        if platform in self._platform_ids:
            return self._platform_ids[platform]

        pid = self.session.execute(
            select(Ecommerce.id).where(Ecommerce.name == platform.display_name)
        ).scalar_one_or_none()
        if pid is None:
            raise LookupError(
                f"platform {platform.display_name!r} missing from ecommerce table; run the bootstrap_db flow"
            )
        self._platform_ids[platform] = int(pid)
        return int(pid)

    def seed_platforms(self) -> int:
        """Insert any missing platform rows. Idempotent; returns rows added."""
        existing = set(self.session.execute(select(Ecommerce.name)).scalars().all())
        missing = [
            Ecommerce(id=p.seed_id, name=p.display_name)
            for p in Platform
            if p.display_name not in existing
        ]
        if missing:
            self.bulk_save(missing)
            self.commit()
        return len(missing)

    def find_by_apply_link(self, apply_link: str) -> Optional[Coupon]:
        if not apply_link:
            return None
        return self.session.execute(
            select(Coupon).where(Coupon.apply_link == apply_link).order_by(Coupon.id).limit(1)
        ).scalar_one_or_none()

    def find_by_composite(self, record: VoucherRecord) -> Optional[Coupon]:
        supplier, value, expiry, platform = composite_key(record)
        stmt = select(Coupon).where(
            Coupon.supplier == supplier,
            Coupon.discount_value == value,
            Coupon.platform == self.platform_id(platform),
        )
        if expiry is None:
            stmt = stmt.where(Coupon.expired_date.is_(None))
        else:
            stmt = stmt.where(Coupon.expired_date == expiry)
        return self.session.execute(stmt.order_by(Coupon.id).limit(1)).scalar_one_or_none()

    def insert(self, record: VoucherRecord) -> Coupon:
        row = Coupon(
            platform=self.platform_id(record.platform),
            apply_link=record.apply_link,
            start_date=record.start_date,
            expired_date=record.expiry_date,
            updated_at=record.start_date,
        )
        _apply_mutable_fields(row, record)
        self.session.add(row)
        self.session.flush()
        return row

    def update(self, existing: Coupon, record: VoucherRecord) -> Coupon:
        # id, platform and start_date stay as first observed
        _apply_mutable_fields(existing, record)
        if record.expiry_date is not None:
            existing.expired_date = record.expiry_date
        if record.apply_link:
            existing.apply_link = record.apply_link
        existing.updated_at = datetime.now()
        self.session.flush()
        return existing

    def bulk_save(self, rows: Iterable[Any]) -> None:
        self.session.add_all(list(rows))
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
