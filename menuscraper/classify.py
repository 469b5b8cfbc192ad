"""
Section classifier.
Finds the DOM subtree holding today's menu and rejects look-alike sections
such as favourites or the permanent menu.
"""
import logging
import re
from typing import Dict, List, Optional, Tuple

from playwright.async_api import ElementHandle, Page

from .config import ScraperConfig
from .models import CURRENCY_MARKER, CandidateSection

logger = logging.getLogger(__name__)


# Searched in this order; within a tag type, document order
CANDIDATE_SELECTORS = ['section', 'div', 'article', 'main', '[role="region"]']

# Non-daily content; exclusion always wins over inclusion
EXCLUDE_PHRASES = [
    'obľúbené',
    'oblubene',
    'populárne',
    'popular',
    'favorites',
    'burger central',
    'domáca slovenská klasika',
    'hlavné jedlá',
]

SK_WEEKDAYS = 'pondelok|utorok|streda|štvrtok|piatok|sobota|nedeľa'
EN_WEEKDAYS = 'monday|tuesday|wednesday|thursday|friday|saturday|sunday'

DAILY_MENU_PATTERNS = [
    re.compile(rf'denné menu ({SK_WEEKDAYS})', re.IGNORECASE),
    re.compile(rf'daily menu ({EN_WEEKDAYS})', re.IGNORECASE),
    re.compile(rf'denne menu ({SK_WEEKDAYS})', re.IGNORECASE),
]

GENERIC_DAILY_PHRASE = 'denné menu'
ITEM_COUNT_PHRASE = 'položiek'

# An item counts toward the best viewport only with a price and some body
BEST_VIEWPORT_MIN_TEXT = 20


def is_excluded(text: str) -> bool:
    """True if the text names a non-daily section"""
    text_lower = text.lower()
    return any(phrase in text_lower for phrase in EXCLUDE_PHRASES)


def is_daily_menu_text(text: Optional[str]) -> bool:
    """Apply the exclusion filter, then the inclusion filter"""
    if not text:
        return False

    text_lower = text.lower()
    if is_excluded(text_lower):
        return False

    if any(pattern.search(text_lower) for pattern in DAILY_MENU_PATTERNS):
        return True

    return GENERIC_DAILY_PHRASE in text_lower and ITEM_COUNT_PHRASE in text_lower


def is_in_viewport(box: Optional[Dict[str, float]], viewport_height: int) -> bool:
    """Top edge of the bounding box falls within the visible viewport"""
    if not box:
        return False
    return 0 <= box['y'] <= viewport_height


class SectionClassifier:
    """Locates today's menu section in the live DOM"""

    def __init__(self, config: ScraperConfig):
        self.config = config

    async def locate(self, page: Page) -> Optional[Tuple[ElementHandle, str]]:
        """
        Return the first element, in selector order, whose text reads as
        today's menu

        Returns:
            Tuple of (element handle, text content), or None on a miss
        """
        for selector in CANDIDATE_SELECTORS:
            for element in await page.query_selector_all(selector):
                text = await element.text_content()
                if is_daily_menu_text(text):
                    return element, text
        return None

    async def inspect(self, page: Page, step: int, viewport_height: int) -> Optional[CandidateSection]:
        """Locate the section and measure its list items at the current scroll position"""
        found = await self.locate(page)
        if found is None:
            logger.debug(f"No daily menu section found at step {step}")
            return None

        element, text = found
        visible = is_in_viewport(await element.bounding_box(), viewport_height)

        item_texts: List[str] = []
        visible_items = 0
        list_items = await element.query_selector_all('li')

        for item in list_items:
            box = await item.bounding_box()
            if not is_in_viewport(box, viewport_height):
                continue

            item_text = (await item.text_content() or '').strip()
            if box['height'] > self.config.min_item_height_px:
                item_texts.append(item_text)
            if visible and CURRENCY_MARKER in item_text and len(item_text) > BEST_VIEWPORT_MIN_TEXT:
                visible_items += 1

        return CandidateSection(
            element=element,
            text=text,
            visible=visible,
            total_items=len(list_items),
            visible_items=visible_items,
            item_texts=item_texts,
            step=step,
        )


def describe(candidate: CandidateSection) -> str:
    """Short log-friendly preview of a candidate section"""
    preview = re.sub(r'\s+', ' ', candidate.text or '').strip()[:80]
    return f"step {candidate.step}: {candidate.visible_items}/{candidate.total_items} items visible ({preview!r})"
