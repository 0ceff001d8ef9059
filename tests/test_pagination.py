import asyncio
from dataclasses import replace

from conftest import FakeElement, FakePage

from dealhunt.voucher_engine.browser.pagination import paginate
from dealhunt.voucher_engine.config import LOAD_MORE_SELECTORS


def test_stops_at_safety_bound_when_button_never_disappears(fast_settings):
    button = FakeElement(visible=True)
    page = FakePage({LOAD_MORE_SELECTORS[0]: [button]})

    result = asyncio.run(paginate(page, fast_settings))

    assert fast_settings.max_pages == 50
    assert result.clicks == 50
    assert result.stop_reason == "max_pages"
    assert not result.exhausted
    assert button.clicks == 50


def test_stops_when_button_disappears(fast_settings):
    page = FakePage()
    clicks_left = {"n": 3}

    def click():
        clicks_left["n"] -= 1
        if clicks_left["n"] == 0:
            page.elements.pop(LOAD_MORE_SELECTORS[1])

    page.elements[LOAD_MORE_SELECTORS[1]] = [FakeElement(on_click=click)]

    result = asyncio.run(paginate(page, fast_settings))

    assert result.clicks == 3
    assert result.exhausted
    assert result.stop_reason == "not_found"


def test_hidden_button_means_exhausted(fast_settings):
    page = FakePage({LOAD_MORE_SELECTORS[0]: [FakeElement(visible=False)]})

    result = asyncio.run(paginate(page, fast_settings))

    assert result.clicks == 0
    assert result.stop_reason == "hidden"


def test_click_error_ends_pagination_without_raising(fast_settings):
    page = FakePage({LOAD_MORE_SELECTORS[0]: [FakeElement(click_error=RuntimeError("detached"))]})

    result = asyncio.run(paginate(page, fast_settings))

    assert result.clicks == 0
    assert result.stop_reason == "error"


def test_bound_is_configurable(fast_settings):
    page = FakePage({LOAD_MORE_SELECTORS[0]: [FakeElement()]})

    result = asyncio.run(paginate(page, replace(fast_settings, max_pages=2)))

    assert result.clicks == 2
    assert result.stop_reason == "max_pages"
