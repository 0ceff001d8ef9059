from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from dealhunt.schema import Base
from dealhunt.voucher_engine.config import (
    BANNER_LINK_SELECTOR,
    CODE_SELECTOR,
    DISCOUNT_SELECTOR,
    EXPIRY_CONTAINER_SELECTOR,
    LABELLED_ROW_SELECTOR,
    NOTE_SELECTOR,
    SUPPLIER_LOGO_SELECTOR,
    SUPPLIER_SELECTORS,
    EngineSettings,
)
from dealhunt.voucher_engine.store import SqlVoucherStore


class FakeElement:
    """Just enough of playwright's ElementHandle for the browser layer."""

    def __init__(
        self,
        text: str = "",
        *,
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[Dict[str, List["FakeElement"]]] = None,
        visible: bool = True,
        click_error: Optional[Exception] = None,
        on_click: Optional[Callable[[], None]] = None,
    ) -> None:
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.click_error = click_error
        self.on_click = on_click
        self.clicks = 0

    async def query_selector(self, selector: str):
        found = self.children.get(selector) or []
        return found[0] if found else None

    async def query_selector_all(self, selector: str):
        return list(self.children.get(selector) or [])

    async def evaluate(self, script: str, arg: Any = None):
        return self.visible

    async def text_content(self):
        return self.text

    async def get_attribute(self, name: str):
        return self.attrs.get(name)

    async def click(self, timeout: Optional[int] = None):
        if self.click_error is not None:
            raise self.click_error
        self.clicks += 1
        if self.on_click is not None:
            self.on_click()

    async def scroll_into_view_if_needed(self):
        return None


class FakePage:
    """Selector -> elements map plus call recording."""

    def __init__(self, elements: Optional[Dict[str, List[FakeElement]]] = None) -> None:
        self.elements: Dict[str, List[FakeElement]] = elements or {}
        self.evaluate_results: Dict[str, Any] = {}
        self.evaluate_calls: List[Any] = []
        self.waits: List[int] = []
        self.visited: List[str] = []
        self.goto_error: Optional[Exception] = None
        self.screenshots: List[str] = []
        self.html = "<html><body></body></html>"

    async def goto(self, url: str, **kwargs):
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)

    async def wait_for_timeout(self, ms: int):
        self.waits.append(ms)

    async def evaluate(self, script: str, arg: Any = None):
        self.evaluate_calls.append((script, arg))
        return self.evaluate_results.get(script)

    async def query_selector(self, selector: str):
        found = self.elements.get(selector) or []
        return found[0] if found else None

    async def query_selector_all(self, selector: str):
        return list(self.elements.get(selector) or [])

    async def screenshot(self, path: str, full_page: bool = False):
        self.screenshots.append(path)

    async def content(self):
        return self.html


APPLY_SELECTOR = "a.italic.underline[href*='shopee']"


def make_card(
    discount: str,
    *,
    supplier: str = "Shopee Toàn Sàn",
    code: str = "",
    link: str = "https://shopee.vn/m/abc",
    banner: str = "",
    text: str = "",
    visible: bool = True,
) -> FakeElement:
    """A voucher card shaped like the aggregator markup."""
    children = {
        SUPPLIER_SELECTORS[0]: [FakeElement(supplier)],
        SUPPLIER_LOGO_SELECTOR: [FakeElement(attrs={"src": "https://cdn.example/logo.png"})],
        DISCOUNT_SELECTOR: [FakeElement(discount)],
        LABELLED_ROW_SELECTOR: [
            FakeElement("ĐH tối thiểu:  99K"),
            FakeElement("Còn lại 45%"),
        ],
        NOTE_SELECTOR: [FakeElement("Giảm tối đa 50K   Xem chi tiết")],
        EXPIRY_CONTAINER_SELECTOR: [
            FakeElement(children={"span": [FakeElement("HSD:"), FakeElement(" 31/12 ")]})
        ],
    }
    if link:
        children[APPLY_SELECTOR] = [FakeElement(attrs={"href": link})]
    if banner:
        children[BANNER_LINK_SELECTOR] = [FakeElement(attrs={"href": banner})]
    if code:
        children[CODE_SELECTOR] = [FakeElement(code)]
    return FakeElement(text or discount, children=children, visible=visible)


@pytest.fixture
def fast_settings(tmp_path) -> EngineSettings:
    return EngineSettings(
        post_navigation_pause_ms=0,
        scroll_pause_ms=0,
        popup_grace_ms=0,
        pre_click_pause_ms=0,
        post_click_pause_ms=0,
        debug_dir=str(tmp_path / "debug"),
    )


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def store(session) -> SqlVoucherStore:
    st = SqlVoucherStore(session)
    st.seed_platforms()
    return st
