"""
Protection and consent stabilizer.
Brings a freshly navigated page into a content-visible state: waits out bot
challenges, dismisses cookie/consent overlays and runs the site's declarative
consent steps. Every step here is best-effort; nothing is raised to the caller.
"""
import logging
from typing import Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from .config import ScraperConfig
from .fetch import (
    ConsentStepError,
    FetchError,
    is_still_blocked,
    detect_challenge,
    navigate,
    read_page_text,
)
from .models import ConsentStep, Site, StabilizationReport

logger = logging.getLogger(__name__)


# Tried in order, first visible match is clicked
CONSENT_SELECTORS = [
    'button:has-text("Súhlasím")',
    'button:has-text("Prijať všetky")',
    'button:has-text("Prijať")',
    'button:has-text("Accept all")',
    'button:has-text("Accept")',
    'button:has-text("Akceptovať")',
    'button:has-text("OK")',
    '[id*="cookie"] button:first-of-type',
    '[class*="cookie"] button:first-of-type',
    '[data-testid*="cookie"] button',
    '[class*="consent"] button:first-of-type',
    'button[class*="accept"]',
    'button[id*="accept"]',
]

DIALOG_BUTTON_SELECTOR = '[role="dialog"] button, .modal button, [class*="popup"] button'

SCROLL_TO_JS = "(y) => window.scrollTo(0, y)"


class PageStabilizer:
    """Clears protection challenges and consent overlays before extraction"""

    def __init__(self, config: ScraperConfig):
        self.config = config

    async def stabilize(self, page: Page, site: Site) -> StabilizationReport:
        """Run every stabilization stage in order and report what happened"""
        report = StabilizationReport()

        report.challenge_detected, report.still_protected = await self.check_challenge(page)
        if report.still_protected:
            logger.info(f"{site.name}: protection challenge detected, waiting for verification...")
            await page.wait_for_timeout(self.config.challenge_wait_ms)
            report.still_protected = await self._renavigate(page, site)

        report.consent_selector = await self.dismiss_consent(page)
        report.consent_steps_run = await self.run_consent_steps(page, site)

        if site.wait_selector:
            report.wait_selector_found = await self._wait_for_selector(page, site.wait_selector)

        return report

    async def check_challenge(self, page: Page):
        """
        Detect a bot challenge and re-check after the settle interval

        Returns:
            Tuple of (challenge detected, still protected after waiting)
        """
        try:
            text = await read_page_text(page)
            if not detect_challenge(text.get('title', ''), text.get('body', '')):
                return False, False

            await page.wait_for_timeout(self.config.challenge_settle_ms)
            text = await read_page_text(page)
            still_protected = is_still_blocked(text.get('body', ''))
            if not still_protected:
                logger.info("Protection challenge cleared on its own")
            return True, still_protected

        except PlaywrightError as e:
            logger.warning(f"Error checking for protection challenge: {e}")
            return False, False

    async def _renavigate(self, page: Page, site: Site) -> bool:
        """Navigate once more with the shorter timeout; returns whether the page is still blocked"""
        try:
            await navigate(page, site.url, self.config.renavigation_timeout_ms)
            text = await read_page_text(page)
        except (FetchError, PlaywrightError) as e:
            logger.warning(f"{site.name}: failed to navigate after challenge wait, proceeding... ({e})")
            return True

        if is_still_blocked(text.get('body', '')):
            logger.warning(f"{site.name}: challenge unresolved, extracting whatever is rendered")
            return True
        return False

    async def dismiss_consent(self, page: Page) -> Optional[str]:
        """
        Click the first visible consent button

        Returns:
            The selector that was clicked, or None if there was nothing to dismiss
        """
        await page.wait_for_timeout(self.config.consent_initial_delay_ms)

        for selector in CONSENT_SELECTORS:
            try:
                button = page.locator(selector).first
                if await button.is_visible(timeout=self.config.consent_visibility_timeout_ms):
                    await button.click()
                    logger.info(f"Consent banner accepted using selector: {selector}")
                    await page.wait_for_timeout(self.config.consent_settle_ms)
                    return selector
            except PlaywrightError as e:
                logger.debug(f"Consent selector {selector} failed: {e}")

        # Generic fallback: first button of any visible dialog
        try:
            for button in await page.locator(DIALOG_BUTTON_SELECTOR).all():
                if await button.is_visible():
                    await button.click()
                    logger.info("Consent banner accepted via dialog button")
                    await page.wait_for_timeout(self.config.consent_settle_ms)
                    return DIALOG_BUTTON_SELECTOR
        except PlaywrightError as e:
            logger.debug(f"Dialog fallback failed: {e}")

        logger.info("No consent banner found or already accepted")
        return None

    async def run_consent_steps(self, page: Page, site: Site) -> int:
        """Execute the site's consent steps in order, stopping at the first failure"""
        completed = 0
        for step in site.consent_steps:
            try:
                await self._run_step(page, step)
                completed += 1
            except ConsentStepError as e:
                logger.warning(f"{site.name}: consent step {completed + 1} failed: {e}")
                break

        if completed:
            logger.info(f"{site.name}: ran {completed}/{len(site.consent_steps)} consent steps")
        return completed

    async def _run_step(self, page: Page, step: ConsentStep) -> None:
        try:
            if step.action == "click":
                await page.locator(step.selector).first.click(
                    timeout=self.config.consent_visibility_timeout_ms
                )
                await page.wait_for_timeout(self.config.consent_settle_ms)
            elif step.action == "wait":
                await page.wait_for_timeout(step.ms)
            elif step.action == "scroll":
                await page.evaluate(SCROLL_TO_JS, step.y)
        except PlaywrightError as e:
            raise ConsentStepError(f"{step.action} failed: {e}") from e

    async def _wait_for_selector(self, page: Page, selector: str) -> bool:
        try:
            await page.wait_for_selector(selector, timeout=self.config.wait_selector_timeout_ms)
            return True
        except PlaywrightError as e:
            logger.warning(f"Wait selector {selector!r} not found, continuing: {e}")
            return False
