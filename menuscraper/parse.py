"""
Parsing layer for turning rendered menu text into structured items.
Text parsing is pure; the snapshot parser runs the same rules over saved HTML.
"""
import re
import logging
from typing import List, Optional

from bs4 import BeautifulSoup
import lxml  # noqa: F401  (parser backend for BeautifulSoup)

from .classify import CANDIDATE_SELECTORS, is_daily_menu_text
from .models import CURRENCY_MARKER, NO_PRICE, MenuItem

logger = logging.getLogger(__name__)


# Money: digits, comma, two digits, euro sign
PRICE_PATTERN = re.compile(r'(\d+,\d{2})\s*€')
# Same, with the optional "starting from" qualifier as a standalone word
QUALIFIED_PRICE_PATTERN = re.compile(r'(?<!\w)(od\s+)?(\d+,\d{2})\s*€')

# Header and navigation text that sits inside menu lists
NOISE_PHRASES = ['Denné menu', 'položiek', 'Zobraz viac']

NAME_PREFIX_PATTERN = re.compile(
    r'^(Samostatná polievka:\s*|Polievka [0-9]:\s*|Menu [0-9]:\s*|Soup [0-9]:\s*)',
    re.IGNORECASE
)
TRAILING_QUALIFIER_PATTERN = re.compile(r'(?:^|\s+|[,.])od$')
TRAILING_PUNCTUATION_PATTERN = re.compile(r'[,.]+$')

DESCRIPTION_STRIP_PATTERNS = [
    re.compile(r'popis jedla.*$', re.IGNORECASE),  # "dish description" link text
    re.compile(r'\d+,\d+\s*€.*$'),                 # secondary prices
    re.compile(r'\d+,\d+\s*kg.*$'),                # weight
    re.compile(r'\d+,\d+\s*l\b.*$'),               # volume
]

CATEGORY_PATTERN = re.compile(
    r'(Denné menu [a-záčďéíĺľňóôŕšťúýž]+|Daily menu|Menu dňa)',
    re.IGNORECASE
)

DEFAULT_CATEGORY = 'Daily Menu'
DEFAULT_DESCRIPTION = 'Daily menu item'
MIN_NAME_LENGTH = 3


def normalize_whitespace(text: str) -> str:
    return re.sub(r'\s+', ' ', text or '').strip()


def is_noise(text: str, min_length: int) -> bool:
    """Structural noise: too short, a header or nav label, or no price at all"""
    if len(text) < min_length:
        return True
    if any(phrase in text for phrase in NOISE_PHRASES):
        return True
    return CURRENCY_MARKER not in text


def clean_name(raw_name: str) -> str:
    """Strip boilerplate prefixes and leftover sentence connectors"""
    name = NAME_PREFIX_PATTERN.sub('', raw_name.strip())
    name = TRAILING_QUALIFIER_PATTERN.sub('', name)
    name = TRAILING_PUNCTUATION_PATTERN.sub('', name)
    return name.strip()


def extract_price(text: str) -> str:
    """First price in the text, keeping the "od" qualifier; "N/A" if none"""
    match = QUALIFIED_PRICE_PATTERN.search(text)
    if not match:
        return NO_PRICE
    if match.group(1):
        return f"od {match.group(2)} €"
    return f"{match.group(2)} €"


def clean_description(raw_description: str) -> str:
    description = raw_description
    for pattern in DESCRIPTION_STRIP_PATTERNS:
        description = pattern.sub('', description)
    return description.strip() or DEFAULT_DESCRIPTION


def derive_category(section_text: str) -> str:
    """Category from the enclosing section's heading, e.g. "Denné menu streda" """
    match = CATEGORY_PATTERN.search(section_text or '')
    return match.group(0) if match else DEFAULT_CATEGORY


def parse_menu_item(
    raw_text: str,
    category: str = DEFAULT_CATEGORY,
    source_step: int = 0,
    min_length: int = 15
) -> Optional[MenuItem]:
    """
    Decompose one rendered list entry into a menu item

    Args:
        raw_text: Text content of the list entry
        category: Category derived from the enclosing section
        source_step: Viewport step the entry was captured at
        min_length: Entries shorter than this are treated as noise

    Returns:
        MenuItem, or None if the entry is noise or fails validation
    """
    text = (raw_text or '').strip()
    if is_noise(text, min_length):
        return None

    text = normalize_whitespace(text)
    price_match = PRICE_PATTERN.search(text)
    if not price_match:
        return None

    name = clean_name(text[:price_match.start()])
    if len(name) <= MIN_NAME_LENGTH or CURRENCY_MARKER in name:
        logger.debug(f"Rejected item, bad name {name!r} from {text[:80]!r}")
        return None

    return MenuItem(
        name=name,
        price=extract_price(text),
        category=category,
        description=clean_description(text[price_match.end():]),
        source_step=source_step,
    )


def parse_section_items(
    item_texts: List[str],
    section_text: str,
    source_step: int = 0,
    min_length: int = 15
) -> List[MenuItem]:
    """Parse every list entry of a matched section, dropping rejects"""
    category = derive_category(section_text)
    items = []
    for raw_text in item_texts:
        item = parse_menu_item(raw_text, category, source_step, min_length)
        if item is not None:
            items.append(item)
    return items


def parse_html_snapshot(html: str, source_step: int = 0, min_length: int = 15) -> List[MenuItem]:
    """
    Run section classification and item parsing over saved HTML

    There is no layout information in a snapshot, so every list entry of the
    matched section is treated as visible.
    """
    soup = BeautifulSoup(html, 'lxml')

    for selector in CANDIDATE_SELECTORS:
        for element in soup.select(selector):
            text = element.get_text(" ")
            if not is_daily_menu_text(text):
                continue

            item_texts = [li.get_text(" ") for li in element.find_all('li')]
            logger.info(f"Snapshot: daily menu section <{element.name}> with {len(item_texts)} list entries")
            return parse_section_items(item_texts, text, source_step, min_length)

    logger.info("Snapshot: no daily menu section found")
    return []
