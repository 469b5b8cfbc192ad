"""
Aggregation of per-step extraction results for one site run.
"""
import hashlib
import logging
from typing import List, Optional

from .models import BestViewport, CandidateSection, MenuItem

logger = logging.getLogger(__name__)


def item_key(item: MenuItem) -> str:
    """
    Stable identity for an item across overlapping viewports

    Uses SHA256 over the canonical name|price|category string
    """
    canonical = f"{item.name.lower().strip()}|{item.price}|{item.category.lower().strip()}"
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def deduplicate(items: List[MenuItem]) -> List[MenuItem]:
    """Drop repeats of the same item, keeping the first occurrence"""
    seen = set()
    unique = []
    for item in items:
        key = item_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


class MenuAggregator:
    """Collects items from every sampled step and remembers the best viewport"""

    def __init__(self, deduplicate_items: bool = False):
        self.deduplicate_items = deduplicate_items
        self.collected: List[MenuItem] = []
        self.best_viewport: Optional[BestViewport] = None

    def add_step(
        self,
        step: int,
        scroll_y: int,
        candidate: Optional[CandidateSection],
        items: List[MenuItem]
    ) -> None:
        """Record one step's classifier match and parsed items"""
        if candidate is not None and candidate.visible:
            if self.best_viewport is None or candidate.visible_items > self.best_viewport.visible_items:
                self.best_viewport = BestViewport(
                    index=step,
                    scroll_y=scroll_y,
                    visible_items=candidate.visible_items
                )

        self.collected.extend(items)

    @property
    def items(self) -> List[MenuItem]:
        if self.deduplicate_items:
            unique = deduplicate(self.collected)
            if len(unique) < len(self.collected):
                logger.debug(f"Dropped {len(self.collected) - len(unique)} duplicate items")
            return unique
        return list(self.collected)

    @property
    def is_empty(self) -> bool:
        return not self.collected
