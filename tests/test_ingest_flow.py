import asyncio
import os
from datetime import datetime

import pytest
from conftest import FakePage, make_card
from playwright.async_api import Error as PlaywrightError
from sqlalchemy import func, select

from dealhunt.schema import Coupon
from dealhunt.voucher_engine.browser.session import NavigationError, navigate
from dealhunt.voucher_engine.config import CONTAINER_SELECTORS
from dealhunt.voucher_engine.dedupe import MatchStrategy
from dealhunt.voucher_engine.ingest_flow import crawl_source, enabled_sources, run_pipeline
from dealhunt.voucher_engine.models import DiscountKind, Platform

URL = "https://bloggiamgia.vn/shopee"
NOW = datetime(2024, 6, 1, 9, 0)


def three_card_page() -> FakePage:
    cards = [
        make_card("20%", link="https://shopee.vn/m/twenty"),
        make_card("50K", code="SAVE50", link="https://shopee.vn/m/fifty"),
        make_card("Ưu đãi đặc biệt", link="https://shopee.vn/m/mystery"),
    ]
    return FakePage({CONTAINER_SELECTORS[0]: cards})


def test_enabled_sources_defaults_to_shopee():
    assert enabled_sources() == [(Platform.SHOPEE, URL)]


def test_navigation_failure_is_fatal(fast_settings):
    page = FakePage()
    page.goto_error = PlaywrightError("Timeout 15000ms exceeded.")

    with pytest.raises(NavigationError):
        asyncio.run(navigate(page, URL, fast_settings))


def test_navigate_scrolls_for_lazy_content(fast_settings):
    page = FakePage()
    asyncio.run(navigate(page, URL, fast_settings))

    assert page.visited == [URL]
    assert len(page.evaluate_calls) == 2


def test_three_cards_parse_into_expected_records(fast_settings):
    records, stats = asyncio.run(crawl_source(three_card_page(), Platform.SHOPEE, URL, fast_settings, now=NOW))

    assert [(r.discount_kind, r.discount_value, r.coupon_code) for r in records] == [
        (DiscountKind.PERCENT, 20.0, None),
        (DiscountKind.FIXED_AMOUNT, 50_000.0, "SAVE50"),
        (DiscountKind.FIXED_AMOUNT, 0.0, None),
    ]
    assert stats["extracted"] == 3
    assert stats["popup"] == "absent"
    assert stats["pagination_stop"] == "not_found"
    assert "debug_artifacts" not in stats


def test_empty_page_dumps_debug_artifacts(fast_settings):
    page = FakePage()
    records, stats = asyncio.run(crawl_source(page, Platform.SHOPEE, URL, fast_settings, now=NOW))

    assert records == []
    artifacts = stats["debug_artifacts"]
    assert artifacts["screenshot"] == page.screenshots[0]
    assert os.path.exists(artifacts["html"])
    assert os.path.basename(artifacts["html"]).startswith("shopee_no_vouchers_")


def test_pipeline_twice_against_unchanged_page_is_idempotent(fast_settings, store, session):
    sources = [(Platform.SHOPEE, URL)]

    first = asyncio.run(
        run_pipeline(three_card_page(), store, sources=sources, settings=fast_settings, strategy=MatchStrategy.IDENTITY_LINK)
    )
    second = asyncio.run(
        run_pipeline(three_card_page(), store, sources=sources, settings=fast_settings, strategy=MatchStrategy.IDENTITY_LINK)
    )

    assert (first["shopee"]["inserted"], first["shopee"]["updated"]) == (3, 0)
    assert (second["shopee"]["inserted"], second["shopee"]["updated"]) == (0, 3)
    assert session.execute(select(func.count()).select_from(Coupon)).scalar_one() == 3

    code = session.execute(select(Coupon.coupon_code).where(Coupon.apply_link == "https://shopee.vn/m/fifty")).scalar_one()
    assert code == "SAVE50"
