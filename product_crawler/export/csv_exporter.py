from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING, List
from pathlib import Path

from ..engines.base import RunResult

if TYPE_CHECKING:
    from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class CSVExporter:
    """
    Writes one row per product URL and per failed URL into ``run.csv``.
    """

    file_name = "run.csv"
    _headers = ["domain", "url", "status", "reason"]

    def export(self, run: RunResult, cfg: "CrawlConfig") -> List[str]:
        path = Path(cfg.output_dir) / self.file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            w = csv.writer(f)
            w.writerow(self._headers)
            for domain, result in run.items():
                for url in result.product_urls:
                    w.writerow([domain, url, "product", ""])
                for failure in result.failed_urls:
                    w.writerow([domain, failure.url, "failed", failure.reason])
        logger.info("Saved %s", path)
        return [str(path)]
