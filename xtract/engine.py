"""The scraper facade: extraction rules + document source + pipeline.

Typical use::

    from xtract.engine import Scraper
    from xtract.extraction import FieldExtractor

    scraper = Scraper([
        FieldExtractor.css("name", "h1"),
        FieldExtractor.css("version", "h2"),
    ])
    scraper.scrape("https://example.com/package")          # one record
    done = scraper.scrape_throttled(urls, max_concurrency=5)
    done.result()                                          # wait for the batch
    scraper.data(), scraper.failed_requests(), scraper.log()

Scraping calls never raise for per-URL problems.  A URL that cannot be
fetched or parsed lands in :meth:`Scraper.failed_requests`; every step is
written to the event log.
"""

from __future__ import annotations

import concurrent.futures
import functools
import inspect
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union
from urllib.parse import urlparse

import pandas as pd

from xtract import export
from xtract.config import Settings, settings as default_settings
from xtract.errors import DocumentError, ExtractionError
from xtract.extraction.builder import RecordBuilder
from xtract.extraction.models import FieldExtractor
from xtract.pipeline.events import EventLog
from xtract.pipeline.ingestion import IngestionPipeline, RecordTransform
from xtract.pipeline.runtime import Runtime
from xtract.pipeline.store import ResultStore
from xtract.pipeline.throttler import run_bounded
from xtract.scraper.models import LogEntry, Source
from xtract.scraper.sources import DocumentSource, StaticSource

Records = List[Optional[Any]]
CompletionCallback = Callable[[], Any]


def is_url(value: str) -> bool:
    """``True`` when *value* is a bare absolute ``http(s)`` URL, not markup."""
    candidate = value.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return False
    parsed = urlparse(candidate)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class Scraper:
    """Scrapes typed records from URLs or HTML with a fixed set of extractors.

    Args:
        extractors: The field extractors, or a ready-made :class:`RecordBuilder`.
        record_type: Record class to build; a frozen dataclass is generated
            from the extractor names when omitted.
        source: Where HTML comes from; plain HTTP by default.
        settings: Explicit configuration; the module singleton when omitted.
    """

    def __init__(
        self,
        extractors: Union[RecordBuilder, Iterable[FieldExtractor]],
        *,
        record_type: Optional[type] = None,
        source: Optional[DocumentSource] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or default_settings
        if isinstance(extractors, RecordBuilder):
            self.builder = extractors
        else:
            self.builder = RecordBuilder(extractors, record_type)
        self.source = source or StaticSource(self.settings)

        self._runtime = Runtime(name=f"xtract-{type(self).__name__.lower()}")
        self._store = ResultStore()
        self._events = EventLog(self._runtime, enabled=self.settings.logging_enabled)
        self._pipeline = IngestionPipeline(
            self._runtime, self._store, self._key, self._events
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def field_names(self) -> Tuple[str, ...]:
        return self.builder.field_names

    def with_logging(self, enabled: bool) -> "Scraper":
        """Enable or disable echoing log entries to the console."""
        self._events.enabled = enabled
        return self

    def with_pipeline(self, transform: Optional[RecordTransform]) -> "Scraper":
        """Apply *transform* to every record right before it is stored."""
        self._pipeline.with_transform(transform)
        return self

    # ------------------------------------------------------------------
    # Internal steps (run on the runtime loop)
    # ------------------------------------------------------------------

    def _key(self, record: Any) -> Any:
        # Records from custom scrape functions are keyed by their own equality.
        if isinstance(record, self.builder.record_type):
            return self.builder.key(record)
        return record

    def _fail(self, url: str, message: str) -> None:
        self._store.fail(url)
        self._events.log(message)

    async def _fetch(self, target: str, announcement: str) -> Tuple[Optional[str], Source]:
        if not is_url(target):
            self._events.log("Scraping data from HTML code")
            return target, Source.html()
        url = target.strip()
        source = Source.from_url(url)
        self._events.log(announcement.format(url))
        html = await self.source.load(url)
        if html is None:
            self._fail(url, f"Failed to fetch {url}")
        return html, source

    def _build(self, markup: str, source: Source, many: bool) -> Optional[Records]:
        try:
            if many:
                return self.builder.build_all(markup)
            return [self.builder.build_one(markup)]
        except DocumentError as exc:
            self._reject(source, f"Failed to parse {source}: {exc}")
        except ExtractionError as exc:
            self._reject(source, f"Failed to extract from {source}: {exc}")
        return None

    def _reject(self, source: Source, message: str) -> None:
        if source.url is not None:
            self._store.fail(source.url)
        self._events.log(message)

    def _ingest(self, records: Records, source: Source) -> None:
        found = [record for record in records if record is not None]
        if not found:
            self._events.log(f"No data extracted from {source}")
        for record in found:
            self._pipeline.submit(record, source)

    def _process(self, markup: str, source: Source, many: bool) -> Optional[Records]:
        records = self._build(markup, source, many)
        if records is not None:
            self._ingest(records, source)
        return records

    async def _scrape(
        self, target: str, many: bool, announcement: str = "Scraping data from {}"
    ) -> Optional[Records]:
        markup, source = await self._fetch(target, announcement)
        if markup is None:
            return None
        return self._process(markup, source, many)

    # ------------------------------------------------------------------
    # Scraping
    # ------------------------------------------------------------------

    def scrape(self, target: str) -> Optional[Any]:
        """Scrape a single record from a URL or from raw HTML.

        Returns:
            The record, or ``None`` if the page could not be fetched or a
            required field was missing.
        """
        records = self._runtime.run(self._scrape(target, many=False))
        return records[0] if records else None

    def scrape_all(self, target: str) -> Records:
        """Scrape every record on a listing page (URL or raw HTML).

        Returns:
            One entry per row; rows with a missing field are ``None``.  An
            empty list when the page could not be fetched or parsed.
        """
        return self._runtime.run(self._scrape(target, many=True)) or []

    def _throttle(
        self,
        urls: Iterable[str],
        many: bool,
        max_concurrency: Optional[int],
        on_complete: Optional[CompletionCallback],
        timeout: Optional[float],
    ) -> "concurrent.futures.Future[None]":
        limit = max_concurrency if max_concurrency is not None else self.settings.max_concurrency
        if limit < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {limit}")
        if self.source.max_concurrency is not None:
            limit = min(limit, self.source.max_concurrency)
        timeout = self.settings.batch_timeout if timeout is None else timeout

        done: "concurrent.futures.Future[None]" = concurrent.futures.Future()

        async def finish() -> None:
            await self._pipeline.join()
            await self._events.join()
            try:
                if on_complete is not None:
                    result = on_complete()
                    if inspect.isawaitable(result):
                        await result
            except Exception as exc:  # noqa: BLE001
                print(f"[THROTTLE] ✗ on_complete failed: {exc!r}")
                done.set_exception(exc)
                return
            done.set_result(None)

        tasks = [
            functools.partial(self._scrape, url, many, "Scraping {}") for url in urls
        ]
        self._runtime.submit(run_bounded(tasks, limit, finish, timeout))
        return done

    def scrape_throttled(
        self,
        urls: Iterable[str],
        max_concurrency: Optional[int] = None,
        on_complete: Optional[CompletionCallback] = None,
        timeout: Optional[float] = None,
    ) -> "concurrent.futures.Future[None]":
        """Scrape one record per URL with at most *max_concurrency* fetches in flight.

        Returns immediately.  When every URL has settled (or *timeout*
        seconds have passed) the pipeline and log are drained, *on_complete*
        is called on the scraper's loop thread and the returned future
        resolves.  Stragglers still running after a timeout keep feeding the
        store.
        """
        return self._throttle(urls, False, max_concurrency, on_complete, timeout)

    def scrape_all_throttled(
        self,
        urls: Iterable[str],
        max_concurrency: Optional[int] = None,
        on_complete: Optional[CompletionCallback] = None,
        timeout: Optional[float] = None,
    ) -> "concurrent.futures.Future[None]":
        """Like :meth:`scrape_throttled`, but every record on each page."""
        return self._throttle(urls, True, max_concurrency, on_complete, timeout)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def data(self) -> List[Any]:
        """Deduplicated records stored so far, in first-seen order."""
        self._pipeline.flush()
        return self._store.records()

    def items(self) -> List[Tuple[Source, Any]]:
        """Stored records paired with where they came from."""
        self._pipeline.flush()
        return self._store.items()

    def failed_requests(self) -> List[str]:
        """URLs that could not be fetched or parsed (duplicates kept)."""
        return self._store.failed()

    def store_failed_request(self, url: str) -> None:
        """Record a failure for a request the caller made on their own."""
        self._store.fail(url)

    def log(self) -> List[LogEntry]:
        self._pipeline.flush()
        self._events.flush()
        return self._events.entries()

    def log_message(self, message: str) -> None:
        """Append a custom entry to the event log."""
        self._events.log(message)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def json_data(self) -> str:
        return export.to_json(self.data(), self.field_names)

    def data_frame(self, include_source: bool = False) -> pd.DataFrame:
        return export.to_data_frame(self.items(), self.field_names, include_source)

    def save_csv(self, path: Union[str, Path]) -> Path:
        return export.save_csv(path, self.items(), self.field_names)

    def save_excel(self, path: Union[str, Path]) -> Path:
        return export.save_excel(path, self.items(), self.field_names)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the document source and stop the background loop."""
        if self._runtime.closed:
            return
        if not self._runtime.in_loop_thread():
            self._pipeline.flush()
            self._events.flush()
            self._runtime.run(self.source.close())
        self._runtime.close()

    def __enter__(self) -> "Scraper":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
