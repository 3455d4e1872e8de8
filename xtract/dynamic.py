"""Scraper for JavaScript-rendered pages, driven through a headless browser."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from xtract.config import Settings, settings as default_settings
from xtract.extraction.builder import RecordBuilder
from xtract.extraction.document import Document, Node
from xtract.extraction.models import FieldExtractor
from xtract.extraction.selectors import Selector
from xtract.engine import Records, Scraper
from xtract.scraper.models import Source
from xtract.scraper.sources import BrowserSource

SelectorLike = Union[Selector, str]
#: ``func(html, url)`` returning one record, or ``None`` when the page has none.
RecordFunc = Callable[[str, str], Optional[Any]]
#: ``func(html, url)`` returning every record on the page, or ``None``.
RecordsFunc = Callable[[str, str], Optional[Iterable[Any]]]


def _as_selector(selector: SelectorLike) -> Selector:
    """Plain strings are treated as CSS selectors."""
    if isinstance(selector, Selector):
        return selector
    return Selector.css(selector)


class DynamicScraper(Scraper):
    """A :class:`Scraper` whose pages come from a live browser.

    Besides the usual scraping calls, the browser can be driven directly
    (navigate, click, type) and the page it ends up on scraped with
    :meth:`scrape` / :meth:`scrape_all` called without a URL.  One browser
    page means throttled batches run one URL at a time.

    The ``*_with`` methods take a scrape function instead of the declarative
    extractors; whatever it returns still goes through the pipeline and is
    deduplicated by equality unless it is an instance of the record type.
    """

    source: BrowserSource

    def __init__(
        self,
        extractors: Union[RecordBuilder, Iterable[FieldExtractor]],
        *,
        record_type: Optional[type] = None,
        source: Optional[BrowserSource] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or default_settings
        super().__init__(
            extractors,
            record_type=record_type,
            source=source or BrowserSource(settings),
            settings=settings,
        )

    # ------------------------------------------------------------------
    # Browser control
    # ------------------------------------------------------------------

    def get(self, url: str) -> bool:
        """Load *url* in the browser; a failure is recorded, not raised."""
        html = self._runtime.run(self.source.load(url))
        if html is None:
            self._fail(url, f"Failed to fetch {url}")
            return False
        return True

    def click(self, selector: SelectorLike) -> None:
        """Click the first element matching *selector* and wait for the page."""
        self._runtime.run(self.source.click(_as_selector(selector)))

    def send_keys(self, selector: SelectorLike, text: str) -> None:
        """Type *text* into the first element matching *selector*."""
        self._runtime.run(self.source.send_keys(_as_selector(selector), text))

    def current_url(self) -> str:
        return self._runtime.run(self.source.url())

    def page_source(self) -> str:
        return self._runtime.run(self.source.current_html())

    def select(self, selector: SelectorLike) -> Optional[Node]:
        return Document.parse(self.page_source()).select_one(_as_selector(selector))

    def select_all(self, selector: SelectorLike) -> List[Node]:
        return Document.parse(self.page_source()).select(_as_selector(selector))

    def quit(self) -> None:
        """Close the browser and stop the scraper."""
        self.close()

    # ------------------------------------------------------------------
    # Scraping the current page
    # ------------------------------------------------------------------

    async def _current_page(self) -> Optional[Tuple[str, str]]:
        try:
            url = await self.source.url()
            markup = await self.source.current_html()
        except self.source.faults() as exc:
            self._events.log(f"Failed to read the current page: {exc}")
            return None
        self._events.log(f"Scraping data from {url}")
        return url, markup

    async def _scrape_current(self, many: bool) -> Optional[Records]:
        page = await self._current_page()
        if page is None:
            return None
        url, markup = page
        return self._process(markup, Source.from_url(url), many)

    def scrape(self, target: Optional[str] = None) -> Optional[Any]:
        """Scrape one record from *target*, or from the current page if omitted."""
        if target is not None:
            return super().scrape(target)
        records = self._runtime.run(self._scrape_current(many=False))
        return records[0] if records else None

    def scrape_all(self, target: Optional[str] = None) -> Records:
        """Scrape every record from *target*, or from the current page if omitted."""
        if target is not None:
            return super().scrape_all(target)
        return self._runtime.run(self._scrape_current(many=True)) or []

    def scrape_many(self, urls: Iterable[str]) -> List[Optional[Any]]:
        """Scrape one record per URL, visiting them one after another."""
        return [self.scrape(url) for url in urls]

    def scrape_all_many(self, urls: Iterable[str]) -> Records:
        """Scrape every record from each URL, visiting them one after another."""
        records: Records = []
        for url in urls:
            records.extend(self.scrape_all(url))
        return records

    # ------------------------------------------------------------------
    # Scraping with a custom function
    # ------------------------------------------------------------------

    async def _scrape_custom(
        self,
        func: Callable[[str, str], Any],
        url: Optional[str],
        many: bool,
        announcement: str = "Scraping data from {}",
    ) -> Optional[Records]:
        if url is None:
            page = await self._current_page()
            if page is None:
                return None
            url, markup = page
        else:
            self._events.log(announcement.format(url))
            html = await self.source.load(url)
            if html is None:
                self._fail(url, f"Failed to scrape {url}")
                return None
            markup = html

        try:
            result = func(markup, url)
            if result is None:
                records: Records = []
            elif many:
                records = list(result)
            else:
                records = [result]
        except Exception as exc:  # noqa: BLE001
            self._fail(url, f"Failed to scrape {url}: {exc}")
            return None

        self._ingest(records, Source.from_url(url))
        return records

    def scrape_with(self, func: RecordFunc, url: Optional[str] = None) -> Optional[Any]:
        """Scrape one record with *func*, from *url* or the current page.

        A load failure or an exception raised by *func* is logged as
        ``Failed to scrape <url>`` and recorded as a failed request.
        """
        records = self._runtime.run(self._scrape_custom(func, url, many=False))
        return records[0] if records else None

    def scrape_all_with(self, func: RecordsFunc, url: Optional[str] = None) -> Records:
        """Scrape every record *func* finds on *url* or the current page."""
        return self._runtime.run(self._scrape_custom(func, url, many=True)) or []

    def scrape_many_with(self, func: RecordFunc, urls: Iterable[str]) -> List[Optional[Any]]:
        """Visit *urls* one after another, scraping one record from each."""
        results = []
        for url in urls:
            records = self._runtime.run(
                self._scrape_custom(func, url, many=False, announcement="Scraping {}")
            )
            results.append(records[0] if records else None)
        return results

    def scrape_all_many_with(self, func: RecordsFunc, urls: Iterable[str]) -> Records:
        """Visit *urls* one after another, scraping every record from each."""
        records: Records = []
        for url in urls:
            records.extend(
                self._runtime.run(self._scrape_custom(func, url, many=True)) or []
            )
        return records
