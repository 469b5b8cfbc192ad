"""
Main CLI entry point for the daily menu scraper.
Supports modes: run-once, status, parse-html
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import ScraperConfig, load_config_from_env, load_config_from_file
from .export import ResultExporter
from .models import SiteExtractionResult
from .parse import parse_html_snapshot
from .runner import MenuScraper, summarize

console = Console()


def build_log_handlers(config: ScraperConfig) -> List[logging.Handler]:
    """Rich console handler, plus a plain file handler when a log file is set"""
    return [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=config.debug_mode
        ),
        logging.FileHandler(config.log_file) if config.log_file else logging.NullHandler()
    ]


def setup_logging(config: ScraperConfig):
    """Setup structured logging"""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(message)s",
        datefmt="[%X]",
        handlers=build_log_handlers(config)
    )


def build_config(args) -> ScraperConfig:
    """Load file config, then environment, then CLI overrides"""
    config = load_config_from_file(args.config) if args.config else ScraperConfig()
    config = load_config_from_env(config)

    if args.headless is not None:
        config.headless = args.headless
    if args.output:
        config.json_output_path = args.output
    if args.csv:
        config.csv_output_path = args.csv
    if args.dedupe:
        config.deduplicate_items = True
    if args.debug:
        config.debug_mode = True
        config.log_level = "DEBUG"

    return config


def print_results_table(results: List[SiteExtractionResult]):
    table = Table(title="Daily Menus")
    table.add_column("Restaurant", style="cyan")
    table.add_column("Status")
    table.add_column("Items", justify="right", style="green")
    table.add_column("Details")

    for result in results:
        if not result.success:
            table.add_row(result.site, "[red]failed[/red]", "0", result.error or "")
        elif not result.items:
            table.add_row(result.site, "[yellow]no menu[/yellow]", "0", "No daily menu available today")
        else:
            preview = ", ".join(f"{item.name} ({item.price})" for item in result.items[:3])
            table.add_row(result.site, "[green]ok[/green]", str(result.item_count), preview)

    console.print(table)


def print_status(config: ScraperConfig):
    table = Table(title="Configured Sites")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Enabled")
    table.add_column("Consent Steps", justify="right")

    for site in config.sites:
        table.add_row(
            site.name,
            site.url,
            "[green]yes[/green]" if site.enabled else "[red]no[/red]",
            str(len(site.consent_steps))
        )

    console.print(table)
    console.print(f"Max scroll steps: {config.max_scroll_steps}")
    console.print(f"Screenshots: {config.screenshot_dir}")


async def run_once(args, config: ScraperConfig):
    """Scrape every enabled site once and export the results"""
    sites = config.get_enabled_sites()
    if args.site:
        site = config.get_site(args.site)
        if site is None:
            console.print(f"[red]Error: Unknown site: {args.site}[/red]")
            sys.exit(1)
        sites = [site]

    console.print("[bold green]Menu Scraper Starting[/bold green]")
    console.print(f"Sites: {len(sites)}")

    scraper = MenuScraper(config)
    results = await scraper.run_all(sites)

    exporter = ResultExporter()
    output_file = exporter.export_json(results, config.json_output_path)
    if config.csv_output_path:
        exporter.export_csv(results, config.csv_output_path)

    print_results_table(results)

    summary = summarize(results)
    console.print(
        f"\n[green]✓ {summary['successful_sites']}/{summary['total_sites']} sites, "
        f"{summary['total_menu_items']} items exported to: {output_file}[/green]"
    )


def parse_html(args, config: ScraperConfig):
    """Offline extraction from a saved HTML snapshot"""
    if not args.html:
        console.print("[red]Error: --html required for parse-html mode[/red]")
        sys.exit(1)

    html_path = Path(args.html)
    if not html_path.exists():
        console.print(f"[red]Error: File not found: {args.html}[/red]")
        sys.exit(1)

    items = parse_html_snapshot(
        html_path.read_text(encoding='utf-8'),
        min_length=config.min_item_text_length
    )

    table = Table(title=f"Items in {html_path.name}")
    table.add_column("Name", style="cyan")
    table.add_column("Price", style="green")
    table.add_column("Category")
    table.add_column("Description")
    for item in items:
        table.add_row(item.name, item.price, item.category, item.description)
    console.print(table)


async def main_async(args):
    """Main async function"""
    config = build_config(args)
    setup_logging(config)

    if args.mode == 'run-once':
        await run_once(args, config)
    elif args.mode == 'status':
        print_status(config)
    elif args.mode == 'parse-html':
        parse_html(args, config)
    else:
        console.print(f"[red]Error: Unknown mode: {args.mode}[/red]")
        sys.exit(1)


def main():
    """CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Scrape today's menu from restaurant web pages",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--mode',
        choices=['run-once', 'status', 'parse-html'],
        default='run-once',
        help='run-once (default), status, or parse-html'
    )

    parser.add_argument(
        '--config',
        help='Path to YAML configuration file with settings and sites'
    )

    parser.add_argument(
        '--site',
        help='Only scrape the named site (run-once mode)'
    )

    parser.add_argument(
        '--html',
        help='Saved HTML page (required for parse-html mode)'
    )

    parser.add_argument(
        '--output',
        '-o',
        help='Output JSON file path (default: menus.json)'
    )

    parser.add_argument(
        '--csv',
        help='Also export items to this CSV file'
    )

    parser.add_argument(
        '--headless',
        action='store_true',
        default=None,
        help='Run browser in headless mode (default: True)'
    )

    parser.add_argument(
        '--no-headless',
        dest='headless',
        action='store_false',
        help='Run browser with GUI'
    )

    parser.add_argument(
        '--dedupe',
        action='store_true',
        help='Drop items repeated across overlapping viewports'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug mode with verbose logging'
    )

    args = parser.parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        if args.debug:
            console.print_exception()
        sys.exit(1)


if __name__ == '__main__':
    main()
