import asyncio
from typing import Callable, Dict, List

import httpx
import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

ARTICLE_HTML = """<!doctype html>
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="Hello &amp; welcome">
    <meta property="og:description" content="A short post">
    <meta property="og:image" content="/img/cover.png">
    <link rel="icon" href="/favicon.svg">
  </head>
  <body><p>Body</p></body>
</html>
"""


def dripping_client(content_type: str, chunks: int = 40, delay: float = 0.05):
    """Client whose server sends one byte at a time, slowly."""

    async def drip():
        for _ in range(chunks):
            await asyncio.sleep(delay)
            yield b"a"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, headers={"Content-Type": content_type}, content=drip()
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeWeb:
    """Routes requests to canned responses and records every request made."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def html(self, url: str, body: str, status_code: int = 200) -> None:
        self.routes[url] = lambda request: httpx.Response(
            status_code,
            headers={"Content-Type": "text/html; charset=utf-8"},
            text=body,
        )

    def image(self, url: str, data: bytes = PNG_BYTES, content_type: str = "image/png") -> None:
        self.routes[url] = lambda request: httpx.Response(
            200, headers={"Content-Type": content_type}, content=data
        )

    def fail(self, url: str, exc_type=httpx.ConnectError) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("boom", request=request)

        self.routes[url] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            raise httpx.ConnectError("unknown host", request=request)
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handle),
            headers={"User-Agent": "Mozilla/5.0 (test)"},
            follow_redirects=True,
        )


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()
