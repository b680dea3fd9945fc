"""
DOM snapshot fetchers.

``HttpDomFetcher`` downloads page HTML with httpx, consults the in-memory and
file caches first, and retries transport failures a bounded number of times.
``StaticDomFetcher`` serves snapshots that are already at hand.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import httpx
import structlog

from autobdd.cache import DomCache, ResultCache
from autobdd.errors import GenerationError
from autobdd.retry import transport_error_from, with_retries

logger = structlog.get_logger(__name__)


class DomFetcher(Protocol):
    """Anything that can produce an HTML snapshot for a URL."""

    async def fetch(self, url: str, use_cache: bool = True) -> str: ...


class HttpDomFetcher:
    """Fetch DOM snapshots over HTTP with two-level caching."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        cache: DomCache | None = None,
        memory_cache: ResultCache | None = None,
        timeout_ms: int = 15000,
        max_retries: int = 2,
        retry_delay_ms: int = 500,
    ) -> None:
        self._client = client
        self._cache = cache
        self._memory_cache = memory_cache
        self._timeout = timeout_ms / 1000
        self._max_retries = max_retries
        self._retry_delay_ms = retry_delay_ms
        self._log = logger.bind(component="dom_fetcher")

    async def fetch(self, url: str, use_cache: bool = True) -> str:
        """
        Return the HTML for ``url``.

        Args:
            url: Page URL
            use_cache: When False, bypass both caches (the result is still stored)

        Raises:
            GenerationError: If the page cannot be fetched
        """
        if use_cache:
            cached = self._cached(url)
            if cached is not None:
                self._log.debug("DOM cache hit", url=url)
                return cached

        html = await with_retries(
            lambda: self._download(url),
            description=f"Fetching DOM from {url}",
            max_retries=self._max_retries,
            retry_delay_ms=self._retry_delay_ms,
        )

        if self._memory_cache is not None:
            self._memory_cache.put(url, html)
        if self._cache is not None:
            self._cache.put(url, html)
        self._log.info("Fetched DOM snapshot", url=url, size=len(html))
        return html

    def _cached(self, url: str) -> str | None:
        if self._memory_cache is not None:
            hit = self._memory_cache.get(url)
            if hit is not None:
                return hit
        if self._cache is not None:
            hit = self._cache.get(url)
            if hit is not None:
                if self._memory_cache is not None:
                    self._memory_cache.put(url, hit)
                return hit
        return None

    async def _download(self, url: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout, follow_redirects=True)
                response.raise_for_status()
                return response.text
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.HTTPError as e:
            raise transport_error_from(e, url) from e


class StaticDomFetcher:
    """Serve pre-captured snapshots, keyed by URL or one snapshot for every URL."""

    def __init__(self, snapshots: Mapping[str, str] | str) -> None:
        self._snapshots = snapshots

    async def fetch(self, url: str, use_cache: bool = True) -> str:
        if isinstance(self._snapshots, str):
            return self._snapshots
        try:
            return self._snapshots[url]
        except KeyError:
            raise GenerationError(f"No DOM snapshot available for {url}") from None
