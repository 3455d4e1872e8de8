"""Document sources: where a scraper gets its HTML from.

A :class:`DocumentSource` is anything that can navigate to a URL, wait until
the page is ready and hand back its current HTML.  Two implementations ship:

``StaticSource``  — plain HTTP through :mod:`xtract.scraper.fetcher`.
``BrowserSource`` — a headless Playwright browser for JavaScript-rendered
pages.

The scraper, record builder and pipeline are the same for both; only the
source passed at construction differs.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, Type

from xtract.config import Settings, settings as default_settings
from xtract.errors import SourceError
from xtract.extraction.selectors import Selector, SelectorKind
from xtract.scraper.fetcher import fetch_html


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class DocumentSource(ABC):
    """Abstract base class for a source of HTML documents."""

    #: Upper bound on concurrent loads; ``None`` means unbounded.
    max_concurrency: Optional[int] = None

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or default_settings

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Point the source at *url*.  Raises on failure."""

    @abstractmethod
    async def current_html(self) -> str:
        """HTML of the page the source currently points at."""

    async def wait_until_ready(self) -> None:
        """Block until the current page has finished loading."""

    def faults(self) -> Tuple[Type[BaseException], ...]:
        """Exception types that :meth:`load` folds into ``None``."""
        return (SourceError,)

    async def load(self, url: str) -> Optional[str]:
        """Navigate to *url* and return its HTML; ``None`` (not raise) on failure."""
        try:
            await self.navigate(url)
            await self.wait_until_ready()
            return await self.current_html()
        except self.faults():
            return None

    async def close(self) -> None:
        """Release any resources held by the source."""


# ---------------------------------------------------------------------------
# Static HTTP source
# ---------------------------------------------------------------------------

class StaticSource(DocumentSource):
    """HTTP GET through the fetcher; no JavaScript is executed."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__(settings)
        self._html: Optional[str] = None

    async def _fetch(self, url: str) -> Optional[str]:
        return await fetch_html(
            url,
            timeout=self.settings.request_timeout,
            ceiling=self.settings.fetch_ceiling,
            user_agent=self.settings.user_agent,
        )

    async def navigate(self, url: str) -> None:
        html = await self._fetch(url)
        if html is None:
            self._html = None
            raise SourceError(f"No HTML returned for {url}")
        self._html = html

    async def current_html(self) -> str:
        if self._html is None:
            raise SourceError("No page loaded")
        return self._html

    async def load(self, url: str) -> Optional[str]:
        # Stateless, so concurrent loads never see each other's pages.
        return await self._fetch(url)


# ---------------------------------------------------------------------------
# Browser source (Playwright)
# ---------------------------------------------------------------------------

class BrowserSource(DocumentSource):
    """A single headless browser page driven through Playwright.

    Playwright is imported lazily so that code paths which never render
    JavaScript don't need a browser installed.  One page means one
    navigation at a time, hence ``max_concurrency = 1``.
    """

    max_concurrency = 1

    def __init__(self, settings: Optional[Settings] = None) -> None:
        super().__init__(settings)
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    def faults(self) -> Tuple[Type[BaseException], ...]:
        from playwright.async_api import Error as PlaywrightError  # noqa: PLC0415

        return (SourceError, PlaywrightError)

    async def page(self) -> Any:
        """The browser page, launching the browser on first use."""
        if self._page is None:
            from playwright.async_api import async_playwright  # noqa: PLC0415

            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, self.settings.browser, None)
            if browser_type is None:
                await self._playwright.stop()
                self._playwright = None
                raise SourceError(f"Unknown browser {self.settings.browser!r}")
            self._browser = await browser_type.launch(headless=self.settings.headless)
            self._page = await self._browser.new_page(user_agent=self.settings.user_agent)
        return self._page

    async def navigate(self, url: str) -> None:
        page = await self.page()
        await page.goto(url, timeout=self.settings.navigation_timeout * 1000)

    async def current_html(self) -> str:
        page = await self.page()
        return await page.content()

    async def wait_until_ready(self) -> None:
        """Poll ``document.readyState`` until it reports ``"complete"``."""
        page = await self.page()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.ready_timeout
        while await page.evaluate("document.readyState") != "complete":
            if loop.time() >= deadline:
                raise SourceError(f"Page {page.url} never finished loading")
            await asyncio.sleep(self.settings.ready_poll_interval)

    async def url(self) -> str:
        page = await self.page()
        return page.url

    async def _locate(self, selector: Selector) -> Any:
        page = await self.page()
        if selector.kind is SelectorKind.XPATH:
            return page.locator(f"xpath={selector.text}").first
        return page.locator(selector.text).first

    async def click(self, selector: Selector) -> None:
        element = await self._locate(selector)
        await element.click()
        await self.wait_until_ready()

    async def send_keys(self, selector: Selector, text: str) -> None:
        element = await self._locate(selector)
        await element.press_sequentially(text)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = self._browser = self._page = None
