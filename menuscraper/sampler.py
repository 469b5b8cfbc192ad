"""
Progressive viewport sampler.
Walks a tall page in viewport-sized slices so lazily rendered menu sections
get a chance to materialise, capturing a screenshot and extracting items at
each slice.
"""
import logging
import math
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from .aggregate import MenuAggregator
from .classify import SectionClassifier, describe
from .config import ScraperConfig
from .models import MenuItem, Site, ViewportStep
from .parse import parse_section_items

logger = logging.getLogger(__name__)


VIEWPORT_HEIGHT_JS = "() => window.innerHeight"
PAGE_HEIGHT_JS = "() => document.body.scrollHeight"
SCROLL_TO_JS = "(y) => window.scrollTo(0, y)"
SCROLL_BY_JS = "(dy) => window.scrollBy(0, dy)"


def compute_scroll_steps(total_height: int, viewport_height: int, max_steps: int) -> int:
    """Number of viewport slices to sample, capped at max_steps"""
    if viewport_height <= 0 or total_height <= 0:
        return 0
    return min(math.ceil(total_height / viewport_height), max_steps)


def run_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO timestamp safe for filenames, e.g. 2024-03-06T11-30-00"""
    now = now or datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H-%M-%S')


def screenshot_filename(site_name: str, timestamp: str, step: Optional[int] = None) -> str:
    safe_name = re.sub(r'[\\/:*?"<>|]+', '_', site_name)
    if step is None:
        return f"{safe_name}-{timestamp}.png"
    return f"{safe_name}-{timestamp}-step{step}.png"


class ProgressiveSampler:
    """Drives scroll position through bounded steps, extracting at each one"""

    def __init__(self, config: ScraperConfig, classifier: SectionClassifier):
        self.config = config
        self.classifier = classifier
        self.screenshot_dir = Path(config.screenshot_dir)

    async def trigger_lazy_load(self, page: Page) -> None:
        """Scroll top to bottom in fixed increments, then return to the top"""
        try:
            scrolled = 0
            page_height = await page.evaluate(PAGE_HEIGHT_JS)
            while scrolled < min(page_height, self.config.lazy_scroll_max_px):
                await page.evaluate(SCROLL_BY_JS, self.config.lazy_scroll_increment_px)
                await page.wait_for_timeout(self.config.lazy_scroll_interval_ms)
                scrolled += self.config.lazy_scroll_increment_px
                # Lazy content may grow the page while we scroll
                page_height = await page.evaluate(PAGE_HEIGHT_JS)

            await page.evaluate(SCROLL_TO_JS, 0)
            await page.wait_for_timeout(self.config.lazy_scroll_settle_ms)
            logger.info(f"Scrolled {scrolled}px to trigger lazy loading")
        except PlaywrightError as e:
            logger.warning(f"Scrolling failed: {e}")

    async def viewport_height(self, page: Page) -> int:
        return await page.evaluate(VIEWPORT_HEIGHT_JS)

    async def scroll_to(self, page: Page, y: int, settle_ms: int) -> None:
        await page.evaluate(SCROLL_TO_JS, y)
        await page.wait_for_timeout(settle_ms)

    async def extract_at_current_position(
        self,
        page: Page,
        step: int,
        viewport_height: int,
        aggregator: Optional[MenuAggregator] = None,
        scroll_y: int = 0
    ) -> List[MenuItem]:
        """Classify the visible DOM and parse whatever section was found"""
        candidate = await self.classifier.inspect(page, step, viewport_height)
        items: List[MenuItem] = []

        if candidate is not None:
            if candidate.visible:
                logger.info(f"Daily menu found in viewport {describe(candidate)}")
            items = parse_section_items(
                candidate.item_texts,
                candidate.text,
                source_step=step,
                min_length=self.config.min_item_text_length
            )

        if aggregator is not None:
            aggregator.add_step(step, scroll_y, candidate, items)
        return items

    async def sample(
        self,
        page: Page,
        site: Site,
        aggregator: MenuAggregator,
        timestamp: str
    ) -> List[ViewportStep]:
        """
        Capture and extract each viewport slice, then take a full-page screenshot

        Returns:
            The sampled steps; the last entry is the full-page capture with index 0
        """
        self.screenshot_dir.mkdir(parents=True, exist_ok=True)

        await self.trigger_lazy_load(page)

        viewport_height = await self.viewport_height(page)
        total_height = await page.evaluate(PAGE_HEIGHT_JS)
        steps = compute_scroll_steps(total_height, viewport_height, self.config.max_scroll_steps)
        logger.info(f"{site.name}: page height {total_height}px, viewport {viewport_height}px, steps {steps}")

        await self.scroll_to(page, 0, self.config.step_settle_ms)

        sampled: List[ViewportStep] = []
        for index in range(steps):
            step = index + 1
            scroll_y = index * viewport_height
            await self.scroll_to(page, scroll_y, self.config.step_settle_ms)

            path = str(self.screenshot_dir / screenshot_filename(site.name, timestamp, step))
            await page.screenshot(path=path, type='png')
            sampled.append(ViewportStep(index=step, scroll_offset_px=scroll_y, screenshot_path=path))
            logger.info(f"Screenshot {step}/{steps} saved: {path}")

            items = await self.extract_at_current_position(
                page, step, viewport_height, aggregator=aggregator, scroll_y=scroll_y
            )
            if items:
                logger.info(f"Extracted {len(items)} items from viewport {step}")
            else:
                logger.info(f"No items found in viewport {step}")

        await self.scroll_to(page, 0, self.config.step_settle_ms)

        full_path = str(self.screenshot_dir / screenshot_filename(site.name, timestamp))
        await page.screenshot(path=full_path, full_page=True, type='png')
        sampled.append(ViewportStep(index=0, scroll_offset_px=0, screenshot_path=full_path))
        logger.info(f"Screenshots saved: {len(sampled)} images")

        return sampled
