"""
Configuration module for the daily menu scraper.
All settings can be overridden via a YAML file, CLI arguments or environment variables.
"""
import logging
import os
from typing import List, Optional
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .models import Site

logger = logging.getLogger(__name__)


# Pages taller than this many viewports only get their first slices sampled
MAX_SCROLL_STEPS = 3

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class ScraperConfig:
    """Main configuration class for the scraper"""

    # Sites
    sites: List[Site] = field(default_factory=list)

    # Browser Configuration
    headless: bool = True
    browser_type: str = "chromium"  # chromium, firefox, webkit
    viewport_width: int = 1280
    viewport_height: int = 1024
    user_agent: str = DEFAULT_USER_AGENT
    launch_args: List[str] = field(default_factory=lambda: [
        '--no-sandbox',
        '--disable-dev-shm-usage',
        '--disable-blink-features=AutomationControlled',
    ])

    # Navigation (milliseconds)
    navigation_timeout_ms: int = 60000
    renavigation_timeout_ms: int = 30000

    # Protection challenge (milliseconds)
    challenge_settle_ms: int = 5000
    challenge_wait_ms: int = 15000

    # Consent overlays (milliseconds)
    consent_initial_delay_ms: int = 3000
    consent_visibility_timeout_ms: int = 2000
    consent_settle_ms: int = 3000
    wait_selector_timeout_ms: int = 10000

    # Lazy-load scroll pass
    lazy_scroll_increment_px: int = 100
    lazy_scroll_interval_ms: int = 100
    lazy_scroll_max_px: int = 30000
    lazy_scroll_settle_ms: int = 2000

    # Progressive sampling
    max_scroll_steps: int = MAX_SCROLL_STEPS
    step_settle_ms: int = 2000

    # Item parsing
    min_item_text_length: int = 15
    min_item_height_px: int = 10

    # Output
    screenshot_dir: str = "./screenshots"
    json_output_path: str = "menus.json"
    csv_output_path: Optional[str] = None

    # Aggregation
    deduplicate_items: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    debug_mode: bool = False

    def get_enabled_sites(self) -> List[Site]:
        """Enabled sites in configured order"""
        return [site for site in self.sites if site.enabled]

    def get_site(self, name: str) -> Optional[Site]:
        """Look up a site by name (case-insensitive)"""
        for site in self.sites:
            if site.name.lower() == name.lower():
                return site
        return None


def load_config_from_env(config: Optional[ScraperConfig] = None) -> ScraperConfig:
    """Apply environment variable overrides (a .env file is honoured)"""
    load_dotenv()

    if config is None:
        config = ScraperConfig()

    # Override from environment
    if os.getenv("MENU_SCRAPER_HEADLESS"):
        config.headless = os.getenv("MENU_SCRAPER_HEADLESS").lower() == "true"

    if os.getenv("MENU_SCRAPER_PAGE_TIMEOUT"):
        config.navigation_timeout_ms = int(os.getenv("MENU_SCRAPER_PAGE_TIMEOUT"))

    if os.getenv("MENU_SCRAPER_SCREENSHOT_DIR"):
        config.screenshot_dir = os.getenv("MENU_SCRAPER_SCREENSHOT_DIR")

    if os.getenv("MENU_SCRAPER_LOG_LEVEL"):
        config.log_level = os.getenv("MENU_SCRAPER_LOG_LEVEL").upper()

    if os.getenv("MENU_SCRAPER_MAX_STEPS"):
        config.max_scroll_steps = int(os.getenv("MENU_SCRAPER_MAX_STEPS"))

    return config


def load_config_from_file(config_path: str) -> ScraperConfig:
    """
    Load configuration from YAML file

    The document has two top-level keys: ``settings`` (mapped onto
    ScraperConfig attributes) and ``sites`` (list of site descriptors).
    """
    import yaml

    config = ScraperConfig()

    if not Path(config_path).exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return config

    with open(config_path, 'r', encoding='utf-8') as f:
        yaml_config = yaml.safe_load(f)

    if not yaml_config:
        return config

    for key, value in (yaml_config.get('settings') or {}).items():
        if key == 'sites':
            continue
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            logger.warning(f"Ignoring unknown setting: {key}")

    config.sites = [Site(**raw) for raw in yaml_config.get('sites') or []]
    logger.debug(f"Loaded {len(config.sites)} sites from {config_path}")

    return config
