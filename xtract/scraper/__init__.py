"""Scraper package — HTTP fetch and document sources."""

from xtract.scraper.fetcher import classify, fetch, fetch_html
from xtract.scraper.models import HttpResponse, LogEntry, Source, SourceKind
from xtract.scraper.sources import BrowserSource, DocumentSource, StaticSource

__all__ = [
    "BrowserSource",
    "DocumentSource",
    "HttpResponse",
    "LogEntry",
    "Source",
    "SourceKind",
    "StaticSource",
    "classify",
    "fetch",
    "fetch_html",
]
