"""
Shared fixtures: in-memory stand-ins for Playwright pages, element handles and
locators. Geometry is simulated from absolute page offsets and the current
scroll position, so bounding boxes move as the page scrolls.
"""
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from menuscraper.config import ScraperConfig


class FakeElement:
    def __init__(self, text: str, top: int = 0, height: int = 40, children: Optional[List["FakeElement"]] = None):
        self.text = text
        self.top = top
        self.height = height
        self.children = children or []
        self.page = None

    def attach(self, page: "FakePage") -> None:
        self.page = page
        for child in self.children:
            child.attach(page)

    async def text_content(self) -> str:
        return self.text

    async def bounding_box(self) -> Dict[str, float]:
        scroll_y = self.page.scroll_y if self.page else 0
        return {'x': 0, 'y': self.top - scroll_y, 'width': 800, 'height': self.height}

    async def query_selector_all(self, selector: str) -> List["FakeElement"]:
        assert selector == 'li'
        return list(self.children)


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self, timeout: Optional[int] = None) -> bool:
        return self.selector in self.page.visible_selectors

    async def click(self, timeout: Optional[int] = None) -> None:
        if self.selector in self.page.failing_clicks:
            raise PlaywrightTimeoutError(f"Timeout clicking {self.selector}")
        self.page.clicks.append(self.selector)

    async def all(self) -> List["FakeLocator"]:
        return [FakeLocator(self.page, self.selector) for _ in range(self.page.dialog_buttons)] \
            if self.selector.startswith('[role="dialog"]') else []


class FakePage:
    def __init__(
        self,
        sections: Optional[Dict[str, List[FakeElement]]] = None,
        viewport_height: int = 1024,
        page_height: int = 3500,
        title: str = "Restaurant",
        bodies: Optional[List[str]] = None,
    ):
        self.sections = sections or {}
        for elements in self.sections.values():
            for element in elements:
                element.attach(self)
        self.viewport_height = viewport_height
        self.page_height = page_height
        self.title = title
        self.bodies = list(bodies or ["Welcome"])
        self.scroll_y = 0

        self.goto_errors: List[Exception] = []
        self.visible_selectors = set()
        self.failing_clicks = set()
        self.missing_selectors = set()
        self.dialog_buttons = 0

        self.visited: List[str] = []
        self.waits: List[int] = []
        self.screenshots: List[Dict] = []
        self.clicks: List[str] = []
        self.scroll_history: List[int] = []
        self.closed = False

    async def goto(self, url: str, wait_until: str = "load", timeout: int = 30000):
        self.visited.append(url)
        if self.goto_errors:
            raise self.goto_errors.pop(0)

    async def evaluate(self, expression: str, arg=None):
        if 'document.title' in expression:
            body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
            return {'title': self.title, 'body': body}
        if 'innerHeight' in expression:
            return self.viewport_height
        if 'scrollHeight' in expression:
            return self.page_height
        if 'scrollTo' in expression:
            self.scroll_y = arg
            self.scroll_history.append(arg)
            return None
        if 'scrollBy' in expression:
            self.scroll_y += arg
            return None
        raise AssertionError(f"unexpected evaluate: {expression}")

    async def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    async def wait_for_selector(self, selector: str, timeout: int = 30000):
        if selector in self.missing_selectors:
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")

    async def screenshot(self, path: str, full_page: bool = False, type: str = 'png'):
        self.screenshots.append({'path': path, 'full_page': full_page, 'scroll_y': self.scroll_y})
        return b''

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        return list(self.sections.get(selector, []))

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def close(self) -> None:
        self.closed = True


class FakeFetcher:
    """Hands out prepared pages in order, one per session"""

    def __init__(self, pages: List[FakePage]):
        self.pages = list(pages)
        self.opened: List[FakePage] = []

    @asynccontextmanager
    async def session(self):
        page = self.pages.pop(0)
        self.opened.append(page)
        try:
            yield page
        finally:
            await page.close()


def menu_section(top: int = 100, items: Optional[List[tuple]] = None, heading: str = "Denné menu streda") -> FakeElement:
    """A daily menu section with list entries given as (text, top) pairs"""
    items = items if items is not None else [
        ("Polievka 1: Gulášová polievka 2,50 € s chlebom", top + 60),
        ("Menu 1: Vyprážaný rezeň so zemiakmi 7,90 €", top + 120),
    ]
    children = [FakeElement(text, top=item_top, height=40) for text, item_top in items]
    text = heading + " 2 položiek " + " ".join(text for text, _ in items)
    return FakeElement(text, top=top, height=600, children=children)


@pytest.fixture()
def config(tmp_path) -> ScraperConfig:
    return ScraperConfig(screenshot_dir=str(tmp_path / "screenshots"))


@pytest.fixture()
def fake_page_factory():
    return FakePage


@pytest.fixture()
def fake_fetcher_factory():
    return FakeFetcher
