from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from pathlib import Path
import os
import json
import re

from .version import CONFIG_SCHEMA_VERSION
from .engines.base import DEFAULT_MAX_REVEAL_ATTEMPTS, DomainTask
from .utils.parsing import DEFAULT_PRODUCT_PATTERNS


@dataclass
class DomainConfig:
    """One site to crawl, with its optional "load more" control."""
    root_url: str
    reveal_selector: Optional[str] = None
    reveal_expected_label: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "DomainConfig":
        if isinstance(value, DomainConfig):
            return value
        if isinstance(value, str):
            return cls(root_url=value)
        if isinstance(value, dict):
            return cls(**value)
        raise ValueError(f"Unsupported domain entry: {value!r}")


@dataclass
class CrawlConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    domains: List[DomainConfig] = field(default_factory=list)
    concurrency_limit: int = 3
    max_reveal_attempts: int = DEFAULT_MAX_REVEAL_ATTEMPTS
    # Seconds to wait after a scroll (and after scrolling a control into view).
    reveal_settle_delay: float = 1.0
    # Seconds to wait after clicking a "load more" control.
    click_settle_delay: float = 3.0
    navigation_timeout: float = 30.0
    headless: bool = True
    product_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_PRODUCT_PATTERNS))
    # Dotted paths for renderer/exporter to allow runtime swapping without code changes.
    renderer: str = "product_crawler.renderers.playwright_renderer:PlaywrightRenderer"
    exporter: str = "product_crawler.export.json_exporter:JSONExporter"
    # Where to write results
    output_dir: str = "output"
    product_file_name: str = "product_urls.json"
    failed_urls_file_name: str = "failed_urls.json"

    def __post_init__(self) -> None:
        self.domains = [DomainConfig.from_value(d) for d in self.domains]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_tasks(self) -> List[DomainTask]:
        return [
            DomainTask(
                root_url=d.root_url,
                reveal_selector=d.reveal_selector,
                reveal_expected_label=d.reveal_expected_label,
                max_reveal_attempts=self.max_reveal_attempts,
                name=d.name,
            )
            for d in self.domains
        ]

    @property
    def navigation_timeout_ms(self) -> int:
        return int(self.navigation_timeout * 1000)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """
        Build config from environment variables (all optional).
        """
        urls = os.getenv("CRAWLER_DOMAINS", "")
        domains = [DomainConfig(root_url=u.strip()) for u in urls.split(",") if u.strip()]

        patterns = os.getenv("CRAWLER_PRODUCT_PATTERNS", "")
        product_patterns = [p.strip() for p in patterns.split(",") if p.strip()] or list(DEFAULT_PRODUCT_PATTERNS)

        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        return cls(
            domains=domains,
            concurrency_limit=int(_get("CRAWLER_CONCURRENCY_LIMIT", "3")),
            max_reveal_attempts=int(_get("CRAWLER_MAX_REVEAL_ATTEMPTS", str(DEFAULT_MAX_REVEAL_ATTEMPTS))),
            reveal_settle_delay=float(_get("CRAWLER_REVEAL_SETTLE_DELAY", "1.0")),
            click_settle_delay=float(_get("CRAWLER_CLICK_SETTLE_DELAY", "3.0")),
            navigation_timeout=float(_get("CRAWLER_NAVIGATION_TIMEOUT", "30.0")),
            headless=_get("CRAWLER_HEADLESS", "true").strip().lower() not in ("0", "false", "no"),
            product_patterns=product_patterns,
            renderer=_get("CRAWLER_RENDERER", cls.renderer),
            exporter=_get("CRAWLER_EXPORTER", cls.exporter),
            output_dir=_get("CRAWLER_OUTPUT_DIR", "output"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "CrawlConfig":
        """
        Load configuration from a JSON file. Legacy (schema 1) files are migrated.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.domains:
            raise ValueError("domains cannot be empty; provide at least one root URL.")
        if self.concurrency_limit <= 0:
            raise ValueError("concurrency_limit must be > 0")
        if self.max_reveal_attempts <= 0:
            raise ValueError("max_reveal_attempts must be > 0")
        if self.reveal_settle_delay < 0 or self.click_settle_delay < 0:
            raise ValueError("settle delays must be >= 0")
        if self.navigation_timeout <= 0:
            raise ValueError("navigation_timeout must be > 0")
        names = [t.domain_name for t in self.to_tasks()]
        if len(set(names)) != len(names):
            raise ValueError("domain names must be unique")
        for pattern in self.product_patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid product pattern {pattern!r}: {exc}") from exc
        # Validate output dir exists or is creatable
        Path(self.output_dir).mkdir(parents=True, exist_ok=True)


# Schema 1 keys (camelCase, as written by the first crawler) -> schema 2 fields.
_LEGACY_KEYS = {
    "maxScrollAttempts": "max_reveal_attempts",
    "concurrencyLimit": "concurrency_limit",
    "outputDir": "output_dir",
    "productFileName": "product_file_name",
    "failedUrlsFileName": "failed_urls_file_name",
}

_LEGACY_DOMAIN_KEYS = {
    "domainName": "root_url",
    "loadButtonClassName": "reveal_selector",
    "loadButtonInnerText": "reveal_expected_label",
}


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    raw = dict(raw)
    legacy = "domainsConfig" in raw or any(k in raw for k in _LEGACY_KEYS)
    schema = raw.get("schema_version", 1 if legacy else CONFIG_SCHEMA_VERSION)

    if schema < 2:
        for old, new in _LEGACY_KEYS.items():
            if old in raw:
                raw.setdefault(new, raw.pop(old))
        if "domainsConfig" in raw:
            raw.setdefault(
                "domains",
                [
                    {_LEGACY_DOMAIN_KEYS.get(k, k): v for k, v in entry.items()}
                    for entry in raw.pop("domainsConfig")
                ],
            )
        raw["schema_version"] = 2

    # Ensure a schema_version is present
    raw.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return raw
