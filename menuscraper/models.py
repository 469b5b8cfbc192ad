import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PRICE_VALUE_PATTERN = re.compile(r'^(od )?\d+,\d{2} €$')
CURRENCY_MARKER = "€"
NO_PRICE = "N/A"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ConsentStep(BaseModel):
    """One declarative consent-handling action: click a selector, wait, or scroll"""
    model_config = ConfigDict(frozen=True)

    action: Literal["click", "wait", "scroll"]
    selector: Optional[str] = None
    ms: Optional[int] = None
    y: Optional[int] = None

    @model_validator(mode="after")
    def check_arguments(self):
        if self.action == "click" and not self.selector:
            raise ValueError("click step requires a selector")
        if self.action == "wait" and (self.ms is None or self.ms < 0):
            raise ValueError("wait step requires a non-negative ms")
        if self.action == "scroll" and self.y is None:
            raise ValueError("scroll step requires y")
        return self


class Site(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    enabled: bool = True
    consent_steps: List[ConsentStep] = Field(default_factory=list)
    wait_selector: Optional[str] = None
    timeout_ms: Optional[int] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("site name must not be blank")
        return value.strip()


class MenuItem(BaseModel):
    """A single dish parsed out of a daily menu section"""
    model_config = ConfigDict(frozen=True)

    name: str
    price: str = NO_PRICE
    category: str = "Daily Menu"
    description: str = ""
    source_step: int = 0

    @field_validator("name")
    @classmethod
    def valid_name(cls, value: str) -> str:
        if len(value) <= 3:
            raise ValueError(f"name too short: {value!r}")
        if CURRENCY_MARKER in value:
            raise ValueError(f"name contains currency marker: {value!r}")
        return value

    @field_validator("price")
    @classmethod
    def valid_price(cls, value: str) -> str:
        if value != NO_PRICE and not PRICE_VALUE_PATTERN.match(value):
            raise ValueError(f"malformed price: {value!r}")
        return value

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class SiteExtractionResult(BaseModel):
    """Outcome of one site run, consumed by downstream delivery"""
    model_config = ConfigDict(frozen=True)

    site: str
    url: str
    success: bool
    items: List[MenuItem] = Field(default_factory=list)
    screenshot_paths: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    used_fallback: bool = False
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def screenshot_path(self) -> Optional[str]:
        """The full-page screenshot, always captured last"""
        return self.screenshot_paths[-1] if self.screenshot_paths else None

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["item_count"] = self.item_count
        return data


# Ephemeral records used while a single site is processed

@dataclass
class ViewportStep:
    index: int
    scroll_offset_px: int
    screenshot_path: str


@dataclass
class CandidateSection:
    """A DOM subtree judged to hold today's menu at one scroll position"""
    element: Any
    text: str
    visible: bool
    total_items: int
    visible_items: int
    item_texts: List[str]
    step: int


@dataclass
class BestViewport:
    index: int
    scroll_y: int
    visible_items: int


@dataclass
class StabilizationReport:
    challenge_detected: bool = False
    still_protected: bool = False
    consent_selector: Optional[str] = None
    consent_steps_run: int = 0
    wait_selector_found: Optional[bool] = None
