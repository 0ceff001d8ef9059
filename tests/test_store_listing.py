from datetime import datetime

import pytest
from sqlalchemy import select

from dealhunt.db import _normalize_database_url
from dealhunt.schema import Ecommerce
from dealhunt.voucher_engine.listing import list_vouchers
from dealhunt.voucher_engine.models import DiscountKind, Platform, VoucherRecord
from dealhunt.voucher_engine.store import SqlVoucherStore

NOW = datetime(2024, 6, 15, 12, 0)


def _record(link, *, platform=Platform.SHOPEE, expiry=None, start=NOW, category="Toàn Sàn"):
    return VoucherRecord(
        platform=platform,
        supplier="Shopee Toàn Sàn",
        discount_kind=DiscountKind.PERCENT,
        discount_value=10.0,
        start_date=start,
        expiry_date=expiry,
        apply_link=link,
        category=category,
    )


def test_normalize_database_url():
    assert _normalize_database_url("postgres://u:p@h/db") == "postgresql://u:p@h/db"
    assert _normalize_database_url("postgresql+psycopg://u:p@h/db") == "postgresql+psycopg2://u:p@h/db"
    assert _normalize_database_url(" sqlite:// ") == "sqlite://"


def test_seed_platforms_is_idempotent(session):
    store = SqlVoucherStore(session)
    assert store.seed_platforms() == 4
    assert store.seed_platforms() == 0

    names = session.execute(select(Ecommerce.name).order_by(Ecommerce.id)).scalars().all()
    assert names == ["Shopee", "Lazada", "Tiki", "Sendo"]
    assert store.platform_id(Platform.TIKI) == 3


def test_platform_id_requires_seeded_row(session):
    with pytest.raises(LookupError):
        SqlVoucherStore(session).platform_id(Platform.SHOPEE)


def test_insert_then_find_by_link(store):
    store.insert(_record("https://shopee.vn/m/a"))
    store.commit()

    row = store.find_by_apply_link("https://shopee.vn/m/a")
    assert row is not None
    assert row.is_percent_discount is True
    assert store.find_by_apply_link("https://shopee.vn/m/zzz") is None
    assert store.find_by_apply_link("") is None


def test_list_vouchers_flags_expiry_and_orders_newest_first(store, session):
    store.insert(_record("https://shopee.vn/m/old", expiry=datetime(2024, 6, 1), start=datetime(2024, 5, 1)))
    store.insert(_record("https://shopee.vn/m/open", expiry=None, start=datetime(2024, 6, 1)))
    store.insert(_record("https://shopee.vn/m/new", expiry=datetime(2024, 7, 1), start=datetime(2024, 6, 10)))
    store.insert(
        _record("https://tiki.vn/x", platform=Platform.TIKI, start=datetime(2024, 6, 12), category="Danh Mục Cụ Thể")
    )
    store.commit()

    views = list_vouchers(session, now=NOW)
    assert [v.apply_link for v in views] == [
        "https://tiki.vn/x",
        "https://shopee.vn/m/new",
        "https://shopee.vn/m/open",
        "https://shopee.vn/m/old",
    ]
    assert {v.apply_link: v.is_active for v in views} == {
        "https://tiki.vn/x": True,
        "https://shopee.vn/m/new": True,
        "https://shopee.vn/m/open": True,
        "https://shopee.vn/m/old": False,
    }
    assert views[0].platform_name == "Tiki"

    shopee = list_vouchers(session, platform=Platform.SHOPEE, now=NOW)
    assert len(shopee) == 3

    specific = list_vouchers(session, category="Danh Mục Cụ Thể", now=NOW)
    assert [v.platform_name for v in specific] == ["Tiki"]
