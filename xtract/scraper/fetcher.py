"""Async HTTP fetcher that never raises.

Every lower-level fault (DNS, refused connections, TLS, timeouts, malformed
URLs) is folded into a ``None`` result here, so the rest of the pipeline only
ever sees two outcomes: an :class:`HttpResponse` or nothing.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from xtract.config import settings
from xtract.scraper.models import HttpResponse


def _default_headers(user_agent: Optional[str] = None) -> dict[str, str]:
    return {"User-Agent": user_agent or settings.user_agent}


def classify(response: httpx.Response) -> HttpResponse:
    """Turn an ``httpx.Response`` into an :class:`HttpResponse`.

    Only ``200 OK`` responses with an HTML content type carry a body.
    """
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip()
    is_html = "html" in content_type.lower()
    body = response.text if response.status_code == 200 and is_html else None
    return HttpResponse(
        request_uri=str(response.request.url),
        status_code=response.status_code,
        content_type=media_type,
        is_html=is_html,
        body=body,
    )


async def _get(client: httpx.AsyncClient, uri: str) -> HttpResponse:
    response = await client.get(uri)
    return classify(response)


async def fetch(
    uri: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
    ceiling: Optional[float] = None,
    user_agent: Optional[str] = None,
) -> Optional[HttpResponse]:
    """GET *uri* and classify the response; ``None`` on any transport fault.

    The transport timeout (*timeout*, default ``settings.request_timeout``)
    is the primary limit.  *ceiling* (default ``settings.fetch_ceiling``) is
    a hard wall-clock cap on the whole call, for transports that ignore
    their own timeout.

    Args:
        uri: Absolute ``http(s)`` URL.
        client: Optional shared client.  When omitted a short-lived client
            is created with the crawler user agent and redirects enabled.
        timeout: Transport timeout in seconds.
        ceiling: Outer wall-clock ceiling in seconds.
        user_agent: Overrides ``settings.user_agent`` for the created client.
    """
    timeout = settings.request_timeout if timeout is None else timeout
    ceiling = settings.fetch_ceiling if ceiling is None else ceiling
    try:
        if client is not None:
            return await asyncio.wait_for(_get(client, uri), ceiling)
        async with httpx.AsyncClient(
            headers=_default_headers(user_agent),
            timeout=timeout,
            follow_redirects=True,
        ) as own_client:
            return await asyncio.wait_for(_get(own_client, uri), ceiling)
    except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError):
        return None


async def fetch_html(
    uri: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
    ceiling: Optional[float] = None,
    user_agent: Optional[str] = None,
) -> Optional[str]:
    """Return the HTML body of *uri*, or ``None`` if there is nothing to extract."""
    response = await fetch(
        uri, client=client, timeout=timeout, ceiling=ceiling, user_agent=user_agent
    )
    if response is None:
        return None
    return response.body
