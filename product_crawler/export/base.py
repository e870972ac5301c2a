from __future__ import annotations

from typing import TYPE_CHECKING, List, Protocol

from ..engines.base import RunResult

if TYPE_CHECKING:
    from ..config import CrawlConfig


class Exporter(Protocol):
    def export(self, run: RunResult, cfg: "CrawlConfig") -> List[str]:
        """Persist ``run`` under ``cfg.output_dir`` and return the written paths."""
        ...
