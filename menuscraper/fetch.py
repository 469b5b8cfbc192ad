"""
Fetch layer for the menu scraper.
Owns the Playwright browser, hands out one isolated page per site visit and
wraps navigation failures into the scraper's own exception types.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright, Browser, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import ScraperConfig

logger = logging.getLogger(__name__)


# Phrases shown by bot-protection interstitials
CHALLENGE_INDICATORS = [
    'verifying you are human',
    'checking your browser',
    'cloudflare',
    'please wait while we check your browser',
    'this may take a few seconds',
]

# Subset that still means "blocked" after the settle interval
BLOCKING_INDICATORS = [
    'verifying you are human',
    'checking your browser',
]

PAGE_TEXT_JS = """
() => ({
    title: document.title || '',
    body: (document.body && document.body.textContent) || ''
})
"""

STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['sk-SK', 'sk', 'en-US', 'en'] });
"""


class FetchError(Exception):
    """Base exception for page fetching errors"""
    pass


class NavigationError(FetchError):
    """Raised when a site is unreachable or navigation times out"""
    pass


class ConsentStepError(FetchError):
    """Raised when a configured consent step fails in the page"""
    pass


def detect_challenge(title: str, body: str) -> bool:
    """Check page title and body text for bot challenge phrases"""
    title_lower = (title or "").lower()
    body_lower = (body or "").lower()
    return any(
        indicator in title_lower or indicator in body_lower
        for indicator in CHALLENGE_INDICATORS
    )


def is_still_blocked(body: str) -> bool:
    """Check body text for phrases that mean the challenge has not cleared"""
    body_lower = (body or "").lower()
    return any(indicator in body_lower for indicator in BLOCKING_INDICATORS)


async def navigate(page: Page, url: str, timeout_ms: int) -> None:
    """
    Navigate to URL and wait for DOM content

    Raises:
        NavigationError: on timeout or any browser-level navigation failure
    """
    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationError(f"Timeout navigating to {url} after {timeout_ms}ms") from e
    except PlaywrightError as e:
        raise NavigationError(f"Error navigating to {url}: {e}") from e


async def read_page_text(page: Page) -> dict:
    """Return the current document title and body text"""
    return await page.evaluate(PAGE_TEXT_JS)


class Fetcher:
    """Owns the browser for a batch and creates one page session per site"""

    def __init__(self, config: ScraperConfig):
        self.config = config
        self.browser: Optional[Browser] = None
        self.playwright = None

    async def __aenter__(self):
        """Async context manager entry"""
        self.playwright = await async_playwright().start()
        try:
            browser_launcher = getattr(self.playwright, self.config.browser_type)
            self.browser = await browser_launcher.launch(
                headless=self.config.headless,
                args=self.config.launch_args
            )
        except Exception:
            await self.playwright.stop()
            self.playwright = None
            raise

        logger.info(f"Browser launched ({self.config.browser_type}, headless={self.config.headless})")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()
        logger.info("Browser closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        """
        Open a fresh browser context and page for one site visit

        The page is never shared between sites. Page and context are closed
        on exit regardless of how the visit ended, including a failed setup.
        """
        if not self.browser:
            raise FetchError("Browser not initialized. Use async context manager.")

        context = await self.browser.new_context(
            viewport={
                'width': self.config.viewport_width,
                'height': self.config.viewport_height
            },
            user_agent=self.config.user_agent
        )
        page = None
        try:
            await context.add_init_script(STEALTH_JS)
            page = await context.new_page()
            yield page
        finally:
            if page is not None:
                await page.close()
            await context.close()
