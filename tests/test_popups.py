import asyncio

from conftest import FakeElement, FakePage

from dealhunt.voucher_engine.browser.popups import (
    POPUP_ABSENT,
    POPUP_NOT_DISMISSED,
    dismiss_popup,
)
from dealhunt.voucher_engine.browser.scripts import BACKDROP_CLICK_JS, FORCE_HIDE_JS
from dealhunt.voucher_engine.config import (
    POPUP_HEADER_BUTTON_SELECTOR,
    POPUP_IMAGE_CLOSE_SELECTOR,
    POPUP_ROOT_SELECTOR,
)


def _page_with_popup() -> "tuple[FakePage, FakeElement]":
    root = FakeElement(visible=True)
    page = FakePage({POPUP_ROOT_SELECTOR: [root]})
    return page, root


def test_no_popup_is_absent():
    page = FakePage()
    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == POPUP_ABSENT
    assert page.evaluate_calls == []


def test_hidden_dialog_left_in_dom_counts_as_absent():
    page = FakePage({POPUP_ROOT_SELECTOR: [FakeElement(visible=False)]})
    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == POPUP_ABSENT


def test_header_button_only_stops_chain_before_scripted_methods():
    page, root = _page_with_popup()

    def close():
        root.visible = False

    button = FakeElement(on_click=close)
    page.elements[POPUP_HEADER_BUTTON_SELECTOR] = [button]

    outcome = asyncio.run(dismiss_popup(page, grace_ms=0))

    assert outcome == "header_button"
    assert button.clicks == 1
    # backdrop / force-hide run through page.evaluate; neither may be tried
    assert page.evaluate_calls == []


def test_failing_click_falls_through_to_next_method():
    page, _ = _page_with_popup()
    page.elements[POPUP_IMAGE_CLOSE_SELECTOR] = [FakeElement(click_error=TimeoutError("not clickable"))]
    page.elements[POPUP_HEADER_BUTTON_SELECTOR] = [FakeElement()]

    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == "header_button"


def test_backdrop_used_when_no_close_controls():
    page, _ = _page_with_popup()
    page.evaluate_results[BACKDROP_CLICK_JS] = True

    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == "backdrop"
    assert [call[0] for call in page.evaluate_calls] == [BACKDROP_CLICK_JS]


def test_every_method_failing_is_not_fatal():
    page, _ = _page_with_popup()
    page.evaluate_results[BACKDROP_CLICK_JS] = False
    page.evaluate_results[FORCE_HIDE_JS] = False

    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == POPUP_NOT_DISMISSED
    assert [call[0] for call in page.evaluate_calls] == [BACKDROP_CLICK_JS, FORCE_HIDE_JS]


def test_grace_period_is_waited_first():
    page = FakePage()
    asyncio.run(dismiss_popup(page, grace_ms=1500))
    assert page.waits == [1500]


def test_close_control_of_a_closed_dialog_is_skipped():
    stale_root = FakeElement(visible=False)
    live_root = FakeElement(visible=True)
    page = FakePage({POPUP_ROOT_SELECTOR: [stale_root, live_root]})

    def close():
        live_root.visible = False

    stale_button = FakeElement(visible=False, click_error=TimeoutError("element is not visible"))
    live_button = FakeElement(on_click=close)
    page.elements[POPUP_HEADER_BUTTON_SELECTOR] = [stale_button, live_button]

    outcome = asyncio.run(dismiss_popup(page, grace_ms=0))

    assert outcome == "header_button"
    assert stale_button.clicks == 0
    assert live_button.clicks == 1


class _BrokenProbePage(FakePage):
    async def query_selector_all(self, selector: str):
        if selector == POPUP_ROOT_SELECTOR:
            raise RuntimeError("execution context was destroyed")
        return await super().query_selector_all(selector)


def test_failed_visibility_check_still_runs_the_chain():
    page = _BrokenProbePage()
    page.evaluate_results[FORCE_HIDE_JS] = True

    assert asyncio.run(dismiss_popup(page, grace_ms=0)) == "force_hide"
    assert [call[0] for call in page.evaluate_calls] == [BACKDROP_CLICK_JS, FORCE_HIDE_JS]
