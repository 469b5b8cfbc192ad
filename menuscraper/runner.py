"""
Site runner and batch orchestration.
One site visit is navigate -> stabilize -> sample -> aggregate, with every
failure converted into a failed result record so a batch always completes.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Page
from playwright.async_api import Error as PlaywrightError

from .aggregate import MenuAggregator
from .classify import SectionClassifier
from .config import ScraperConfig
from .fetch import Fetcher, navigate
from .models import BestViewport, MenuItem, RunState, Site, SiteExtractionResult
from .sampler import ProgressiveSampler, run_timestamp
from .stabilize import PageStabilizer

logger = logging.getLogger(__name__)


class SiteRunner:
    """Runs the full extraction pipeline for a single site"""

    def __init__(self, config: ScraperConfig, fetcher: Fetcher):
        self.config = config
        self.fetcher = fetcher
        self.stabilizer = PageStabilizer(config)
        self.sampler = ProgressiveSampler(config, SectionClassifier(config))

    async def run(self, site: Site) -> SiteExtractionResult:
        """Scrape one site; never raises"""
        logger.info(f"Starting screenshot-based scraping for: {site.name}")

        try:
            async with self.fetcher.session() as page:
                return await self._run_on_page(page, site)
        except Exception as e:
            logger.error(f"Scraping failed for {site.name}: {type(e).__name__}: {e}")
            logger.debug("Site run traceback", exc_info=True)
            return SiteExtractionResult(
                site=site.name,
                url=site.url,
                success=False,
                error=str(e) or type(e).__name__,
            )

    async def _run_on_page(self, page: Page, site: Site) -> SiteExtractionResult:
        timestamp = run_timestamp()

        await navigate(page, site.url, site.timeout_ms or self.config.navigation_timeout_ms)
        report = await self.stabilizer.stabilize(page, site)
        if report.still_protected:
            logger.warning(f"{site.name}: page may still be behind a protection challenge")

        aggregator = MenuAggregator(self.config.deduplicate_items)
        steps = await self.sampler.sample(page, site, aggregator, timestamp)

        items = aggregator.items
        used_fallback = False
        if not items:
            used_fallback = True
            items = await self.fallback_extract(page, site, aggregator.best_viewport)

        if not items:
            logger.info(f"{site.name}: no daily menu available")
        logger.info(f"Final menu data: {len(items)} items collected")

        return SiteExtractionResult(
            site=site.name,
            url=site.url,
            success=True,
            items=items,
            screenshot_paths=[step.screenshot_path for step in steps],
            used_fallback=used_fallback,
        )

    async def fallback_extract(
        self,
        page: Page,
        site: Site,
        best_viewport: Optional[BestViewport]
    ) -> List[MenuItem]:
        """
        One more extraction pass after progressive capture found nothing

        Anchored at the best viewport's scroll offset when there is one. An
        empty list is the normal "no menu today" outcome.
        """
        step = 0
        try:
            if best_viewport is not None:
                logger.info(
                    f"Scrolling to best daily menu viewport: step {best_viewport.index} "
                    f"with {best_viewport.visible_items} items"
                )
                await self.sampler.scroll_to(page, best_viewport.scroll_y, self.config.step_settle_ms)
                step = best_viewport.index

            viewport_height = await self.sampler.viewport_height(page)
            items = await self.sampler.extract_at_current_position(page, step, viewport_height)
        except PlaywrightError as e:
            logger.warning(f"{site.name}: fallback extraction failed: {e}")
            return []

        logger.info(f"{site.name}: fallback extracted {len(items)} items")
        return items


def summarize(results: List[SiteExtractionResult]) -> Dict[str, Any]:
    """Session summary for logs and CLI output"""
    return {
        "total_sites": len(results),
        "successful_sites": sum(1 for r in results if r.success),
        "failed_sites": sum(1 for r in results if not r.success),
        "total_menu_items": sum(r.item_count for r in results if r.success),
        "sites": [
            {
                "name": r.site,
                "success": r.success,
                "item_count": r.item_count,
                "error": r.error,
            }
            for r in results
        ],
    }


class MenuScraper:
    """Sequential batch over all enabled sites; owns the run state"""

    def __init__(self, config: ScraperConfig):
        self.config = config
        self.state = RunState.IDLE

    async def run_all(self, sites: Optional[List[Site]] = None) -> List[SiteExtractionResult]:
        if self.state == RunState.RUNNING:
            logger.warning("Scraping job is already running, skipping this execution")
            return []

        sites = self.config.get_enabled_sites() if sites is None else sites
        if not sites:
            logger.warning("No enabled sites found in configuration")
            return []

        self.state = RunState.RUNNING
        try:
            async with Fetcher(self.config) as fetcher:
                results = await self.run_sites(sites, SiteRunner(self.config, fetcher))
        except Exception:
            self.state = RunState.FAILED
            raise

        self.state = RunState.COMPLETED
        return results

    async def run_sites(self, sites: List[Site], runner: SiteRunner) -> List[SiteExtractionResult]:
        """Run sites strictly one after another"""
        logger.info(f"Starting to scrape {len(sites)} enabled sites")
        results = []

        for site in sites:
            result = await runner.run(site)
            results.append(result)
            if result.success:
                logger.info(f"Successfully scraped {site.name}: {result.item_count} items")
            else:
                logger.warning(f"Failed to scrape {site.name}: {result.error}")

        logger.info(f"Scraping session completed: {json.dumps(summarize(results), indent=2, ensure_ascii=False)}")
        return results
