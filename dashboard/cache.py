"""
Rendered page cache keyed by request path.

Pages are stored on disk with the diskcache library so every worker
process sees the same entries; revalidate_path() drops a path so the next
request renders it again.
"""

import logging
from functools import cache
from pathlib import Path
from typing import Callable

import diskcache

from dashboard.config import settings

logger = logging.getLogger(__name__)

INVOICES_PATH = "/dashboard/invoices"


class PageCache:
    """
    Disk-backed cache of rendered HTML pages.

    Attributes:
        cache_dir: Path to the cache directory.
        expire: TTL in seconds applied to stored pages. None means no expiration.
    """

    def __init__(self, cache_dir: str | Path, expire: int | None = None) -> None:
        self.cache_dir = Path(cache_dir)
        self.expire = expire
        self._cache = diskcache.Cache(str(self.cache_dir))

    def get_or_render(self, path: str, render: Callable[[], str]) -> str:
        """
        Return the cached page for path, rendering and storing it on a miss.

        Args:
            path: Logical page path, e.g. "/dashboard/invoices".
            render: Function producing the page HTML (no arguments).

        Returns:
            The page HTML.
        """
        cached = self._cache.get(path, default=None)
        if cached is not None:
            return cached

        html = render()
        self._cache.set(path, html, expire=self.expire)
        return html

    def revalidate_path(self, path: str) -> None:
        """Drop the cached page so the next request renders it again."""
        logger.info(f"Revalidating cached page: {path}")
        self._cache.delete(path)

    def __contains__(self, path: str) -> bool:
        return path in self._cache

    def close(self) -> None:
        self._cache.close()


@cache
def get_page_cache() -> PageCache:
    """Process-wide page cache built from settings."""
    return PageCache(settings.cache_dir, expire=settings.cache_ttl_seconds)
