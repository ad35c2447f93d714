import asyncio
import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx

from link_preview.config import settings
from link_preview.exceptions import FetchError

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
ACCEPT_HTML = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"


def build_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create the shared outbound client used by the fetcher and image persister."""
    return httpx.AsyncClient(
        headers={
            "User-Agent": settings.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        },
        timeout=timeout if timeout is not None else settings.fetch_timeout,
        follow_redirects=True,
    )


def is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


class PageFetcher:
    """Reads a bounded prefix of a remote HTML document."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_bytes: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = client
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_html_bytes
        self.timeout = timeout if timeout is not None else settings.fetch_timeout

    async def fetch(self, url: str) -> str:
        """Return up to ``max_bytes`` of the page at ``url`` decoded as text.

        Raises FetchError on timeouts, transport failures, non-2xx statuses
        and responses that do not declare an HTML content type. ``timeout``
        bounds the whole exchange, body included, not each network read.
        """
        if not is_http_url(url):
            raise FetchError(url, "not an http(s) URL")

        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timed out") from exc

    async def _fetch(self, url: str) -> str:
        try:
            async with self.client.stream(
                "GET",
                url,
                headers={"Accept": ACCEPT_HTML, "User-Agent": settings.user_agent},
                timeout=self.timeout,
            ) as response:
                if not response.is_success:
                    raise FetchError(url, f"HTTP {response.status_code}")

                content_type = response.headers.get("Content-Type", "")
                media_type = content_type.split(";")[0].strip().lower()
                if media_type and media_type not in HTML_CONTENT_TYPES:
                    raise FetchError(url, f"unexpected content type {media_type}")

                prefix = await self._read_prefix(response)
                return decode_html(prefix, response.charset_encoding)
        except httpx.TimeoutException as exc:
            raise FetchError(url, "timed out") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(url, str(exc) or exc.__class__.__name__) from exc

    async def _read_prefix(self, response: httpx.Response) -> bytes:
        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) >= self.max_bytes:
                logger.debug(
                    "Stopped reading %s after %d bytes", response.url, len(buffer)
                )
                break
        return bytes(buffer[: self.max_bytes])


def decode_html(prefix: bytes, charset: Optional[str] = None) -> str:
    """Decode a page prefix, never failing on unknown charsets or cut characters."""
    if charset:
        try:
            return prefix.decode(charset, errors="replace")
        except LookupError:
            logger.debug("Unknown charset %s, falling back to utf-8", charset)
    return prefix.decode("utf-8", errors="replace")
