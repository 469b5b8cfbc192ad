"""
Export layer for scraping results.
JSON keeps the full result records; CSV flattens to one row per menu item
with a fixed column order.
"""
import csv
import json
import logging
from typing import List
from pathlib import Path

from .models import SiteExtractionResult

logger = logging.getLogger(__name__)


CSV_COLUMNS = [
    "Restaurant",
    "URL",
    "Name",
    "Price",
    "Category",
    "Description",
    "Source Step",
    "Scraped At",
]


class ResultExporter:
    """Writes site extraction results to disk"""

    def export_json(self, results: List[SiteExtractionResult], output_path: str) -> str:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump([r.to_dict() for r in results], f, indent=2, ensure_ascii=False)

        logger.info(f"Exported {len(results)} site results to {output_file}")
        return str(output_file)

    def export_csv(self, results: List[SiteExtractionResult], output_path: str) -> str:
        """
        Export successful results as one row per menu item

        Returns:
            Path to created CSV file
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        rows = 0
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(
                f,
                fieldnames=CSV_COLUMNS,
                quoting=csv.QUOTE_MINIMAL,
                doublequote=True
            )
            writer.writeheader()

            for result in results:
                if not result.success:
                    continue
                for item in result.items:
                    writer.writerow({
                        "Restaurant": result.site,
                        "URL": result.url,
                        "Name": item.name,
                        "Price": item.price,
                        "Category": item.category,
                        "Description": item.description,
                        "Source Step": item.source_step,
                        "Scraped At": result.scraped_at.isoformat(),
                    })
                    rows += 1

        logger.info(f"Exported {rows} rows to {output_file}")
        return str(output_file)
