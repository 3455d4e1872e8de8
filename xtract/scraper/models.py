"""Data models for the fetch side of the scraper."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


@dataclass(frozen=True)
class HttpResponse:
    """The classified outcome of one GET request.

    ``body`` is only populated for ``200 OK`` responses whose content type
    mentions HTML; everything else keeps the status and content type around
    for diagnostics.
    """

    request_uri: str
    status_code: int
    content_type: str
    is_html: bool
    body: Optional[str] = None


class SourceKind(str, Enum):
    HTML = "html"
    URL = "url"


@dataclass(frozen=True)
class Source:
    """Where a stored record came from: raw markup or a fetched URL."""

    kind: SourceKind
    url: Optional[str] = None

    @classmethod
    def html(cls) -> "Source":
        return cls(SourceKind.HTML)

    @classmethod
    def from_url(cls, url: str) -> "Source":
        return cls(SourceKind.URL, url)

    def __str__(self) -> str:
        if self.kind is SourceKind.URL:
            return self.url or ""
        return "HTML"


class LogEntry(NamedTuple):
    """One line of a scraper's event log."""

    timestamp: datetime
    message: str

    def __str__(self) -> str:
        return f"{self.timestamp:%Y-%m-%d %H:%M:%S} - {self.message}"
