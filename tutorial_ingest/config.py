"""Centralised settings for the tutorial ingest pipeline.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Two layers live here:

* :class:`Settings` — process-wide, environment-driven values (paths, log
  level, crawl defaults).
* :class:`CrawlConfig` — an immutable snapshot of the crawl knobs that is
  passed explicitly into every pipeline function.  Nothing in the pipeline
  reads ``settings`` directly, so tests can hand in their own config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("INGEST_WORKSPACE", Path.home() / ".tutorial_ingest")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "content.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Target site
    # ------------------------------------------------------------------
    site_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "SITE_BASE_URL", "https://www.freecodecamp.org"
        )
    )

    # ------------------------------------------------------------------
    # Crawler
    # ------------------------------------------------------------------
    crawl_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_CONCURRENCY", "3"))
    )
    crawl_delay: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_DELAY", "1.0"))
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "CRAWL_USER_AGENT", "Tutorial-Ingest-Scraper/1.0"
        )
    )
    discovery_limit: int = field(
        default_factory=lambda: int(os.environ.get("DISCOVERY_LIMIT", "50"))
    )
    keyword_limit: int = field(
        default_factory=lambda: int(os.environ.get("KEYWORD_LIMIT", "10"))
    )

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    job_max_retries: int = field(
        default_factory=lambda: int(os.environ.get("JOB_MAX_RETRIES", "3"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class CrawlConfig:
    """Immutable crawl parameters threaded through the pipeline."""

    concurrency: int = 3
    delay: float = 1.0
    timeout: float = 30.0
    user_agent: str = "Tutorial-Ingest-Scraper/1.0"
    base_url: str = "https://www.freecodecamp.org"
    max_urls: int = 50
    keyword_limit: int = 10
    default_language: str = "javascript"

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.max_urls < 1:
            raise ValueError(f"max_urls must be >= 1, got {self.max_urls}")

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "CrawlConfig":
        """Build a config from *source* (defaults to the module singleton)."""
        s = source or settings
        return cls(
            concurrency=s.crawl_concurrency,
            delay=s.crawl_delay,
            timeout=s.request_timeout,
            user_agent=s.user_agent,
            base_url=s.site_base_url.rstrip("/"),
            max_urls=s.discovery_limit,
            keyword_limit=s.keyword_limit,
        )

    def with_overrides(self, **changes: object) -> "CrawlConfig":
        """Return a copy with the non-``None`` *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


# Module-level singleton — import this everywhere:
#   from tutorial_ingest.config import settings
settings = Settings()
