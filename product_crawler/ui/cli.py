from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..config import CrawlConfig, DomainConfig
from ..utils.logging import setup_logging
from ..utils.loader import load_symbol
from ..engines.base import CrawlStats, RunResult
from ..engines.orchestrator import Orchestrator
from ..export.base import Exporter

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Discover product URLs on e-commerce domains")
    p.add_argument("urls", nargs="*", help="Domain root URLs (space-separated)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--concurrency", type=int, default=None, help="Domains crawled in parallel (default from config)")
    p.add_argument("--max-reveal-attempts", type=int, default=None,
                   help="Max scrolls/clicks per page while revealing content")
    p.add_argument("--reveal-selector", type=str, default=None,
                   help="CSS selector of a 'load more' control, applied to URLs given on the command line")
    p.add_argument("--reveal-label", type=str, default=None,
                   help="Label the 'load more' control shows while more items remain")
    p.add_argument("--renderer", type=str, default=None, help="Renderer dotted path (module:ClassName)")
    p.add_argument("--exporter", type=str, default=None, help="Exporter dotted path (module:ClassName)")
    p.add_argument("--output-dir", type=str, default=None, help="Output directory")
    p.add_argument("--headed", action="store_true", help="Show the browser window")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI crawl")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config:
        cfg = CrawlConfig.from_file(args.config)
    else:
        cfg = CrawlConfig.from_env()

    if args.urls:
        cfg.domains = [
            DomainConfig(
                root_url=u,
                reveal_selector=args.reveal_selector,
                reveal_expected_label=args.reveal_label,
            )
            for u in args.urls
        ]
    if args.concurrency is not None:
        cfg.concurrency_limit = args.concurrency
    if args.max_reveal_attempts is not None:
        cfg.max_reveal_attempts = args.max_reveal_attempts
    if args.renderer:
        cfg.renderer = args.renderer
    if args.exporter:
        cfg.exporter = args.exporter
    if args.output_dir:
        cfg.output_dir = args.output_dir
    if args.headed:
        cfg.headless = False

    cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    try:
        import uvicorn  # type: ignore
    except ImportError as exc:  # pragma: no cover - optional dep
        raise SystemExit("To run the API, install the api extra: pip install 'product-crawler[api]'") from exc
    uvicorn.run("product_crawler.apis.app:app", host=host, port=port)


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    cfg = _load_config(args)

    # Dynamic exporter loading so upgrades don't require code edits.
    exporter_cls = load_symbol(cfg.exporter)
    orchestrator = Orchestrator.from_config(cfg)

    run: RunResult = asyncio.run(orchestrator.run_all(cfg.to_tasks(), cfg.concurrency_limit))

    exporter: Exporter = exporter_cls()
    paths = exporter.export(run, cfg)

    stats = CrawlStats.from_run(run, orchestrator.last_outcomes)
    logger.info("Domains: %s | Visited: %s | Products: %s | Failed URLs: %s | Output: %s",
                stats.domains, stats.visited, stats.products, stats.failed_urls, ", ".join(paths))
    if stats.failed_domains:
        logger.warning("Domains that failed outright: %s", ", ".join(stats.failed_domains))
    return 0
