from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, List
from pathlib import Path

from ..engines.base import RunResult

if TYPE_CHECKING:
    from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class JSONExporter:
    """
    Writes two files: ``{domain: [product urls]}`` and
    ``{domain: [{url, reason}]}`` for the failures.
    """

    def export(self, run: RunResult, cfg: "CrawlConfig") -> List[str]:
        out_dir = Path(cfg.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)

        products = {domain: list(r.product_urls) for domain, r in run.items()}
        failures = {domain: [f.to_dict() for f in r.failed_urls] for domain, r in run.items()}

        written = [
            self._write(out_dir / cfg.product_file_name, products),
            self._write(out_dir / cfg.failed_urls_file_name, failures),
        ]
        for path in written:
            logger.info("Saved %s", path)
        return written

    def _write(self, path: Path, payload: Any) -> str:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        return str(path)
