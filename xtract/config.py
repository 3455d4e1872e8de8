"""Centralised settings for XTract.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Scrapers never read process-wide state behind the caller's back: they take a
:class:`Settings` instance at construction and only fall back to the module
singleton when none is given.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

GOOGLEBOT_USER_AGENT = (
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------
    logging_enabled: bool = field(
        default_factory=lambda: _env_bool("XTRACT_LOGGING", True)
    )

    # ------------------------------------------------------------------
    # Throttling
    # ------------------------------------------------------------------
    max_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("XTRACT_MAX_CONCURRENCY", "5"))
    )
    batch_timeout: Optional[float] = field(
        default_factory=lambda: _env_optional_float("XTRACT_BATCH_TIMEOUT")
    )

    # ------------------------------------------------------------------
    # HTTP fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("XTRACT_REQUEST_TIMEOUT", "55.0"))
    )
    fetch_ceiling: float = field(
        default_factory=lambda: float(os.environ.get("XTRACT_FETCH_CEILING", "60.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("XTRACT_USER_AGENT", GOOGLEBOT_USER_AGENT)
    )

    # ------------------------------------------------------------------
    # Browser (JavaScript-rendered pages only)
    # ------------------------------------------------------------------
    browser: str = field(
        default_factory=lambda: os.environ.get("XTRACT_BROWSER", "chromium")
    )
    headless: bool = field(
        default_factory=lambda: _env_bool("XTRACT_HEADLESS", True)
    )
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("XTRACT_NAVIGATION_TIMEOUT", "30.0"))
    )
    ready_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("XTRACT_READY_POLL_INTERVAL", "0.1"))
    )
    ready_timeout: float = field(
        default_factory=lambda: float(os.environ.get("XTRACT_READY_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    export_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("XTRACT_EXPORT_DIR", "exports"))
    )

    def ensure_export_dir(self) -> None:
        """Create the export directory if it does not exist."""
        self.export_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — the default for every scraper:
#   from xtract.config import settings
settings = Settings()
