"""Preview image download and storage."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, Optional, Protocol
from urllib.parse import unquote, urlsplit

import httpx
from filetype import guess

from link_preview.config import settings
from link_preview.exceptions import ImagePersistError
from link_preview.services.fetcher import is_http_url
from link_preview.utils import slugify

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSION = "jpg"
IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "avif", "svg", "bmp", "ico"}


class ImageStore(Protocol):
    """Somewhere persisted preview images live, addressed by filename."""

    async def put(self, filename: str, data: bytes) -> str:
        """Store ``data`` under ``filename`` and return its site-relative path."""
        ...


class FileSystemImageStore:
    """Writes images into a directory of the public site root."""

    def __init__(self, public_dir: Path, subdir: str) -> None:
        self.subdir = subdir.strip("/")
        self.directory = Path(public_dir) / self.subdir

    def public_path(self, filename: str) -> str:
        return f"/{self.subdir}/{filename}"

    async def put(self, filename: str, data: bytes) -> str:
        destination = self.directory / filename
        await asyncio.to_thread(self._write, destination, data)
        logger.info("Saved preview image to %s", destination)
        return self.public_path(filename)

    def _write(self, destination: Path, data: bytes) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)


class MemoryImageStore:
    """Keeps images in a dict; used for dry runs and tests."""

    def __init__(self, subdir: str = "images/link-previews") -> None:
        self.subdir = subdir.strip("/")
        self.files: Dict[str, bytes] = {}

    async def put(self, filename: str, data: bytes) -> str:
        path = f"/{self.subdir}/{filename}"
        self.files[path] = data
        return path


def default_image_store() -> FileSystemImageStore:
    return FileSystemImageStore(settings.public_dir, settings.image_subdir)


def image_extension(url: str) -> str:
    """Extension taken from the image URL's own path, or the generic default."""
    try:
        path = unquote(urlsplit(url).path)
    except ValueError:
        return DEFAULT_IMAGE_EXTENSION
    suffix = PurePosixPath(path).suffix.lstrip(".").lower()
    if suffix == "jpeg":
        suffix = "jpg"
    return suffix if suffix in IMAGE_EXTENSIONS else DEFAULT_IMAGE_EXTENSION


def looks_like_image(content_type: Optional[str], data: bytes) -> bool:
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type.startswith("image/"):
        return True
    kind = guess(data)
    return bool(kind and kind.mime.startswith("image/"))


class ImagePersister:
    """Downloads a preview image and hands it to an image store."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: ImageStore,
        max_bytes: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.max_bytes = max_bytes if max_bytes is not None else settings.max_image_bytes
        self.timeout = timeout if timeout is not None else settings.image_timeout

    @staticmethod
    def filename_for(image_url: str, slug: str) -> str:
        return f"{slugify(slug)}.{image_extension(image_url)}"

    async def persist(self, image_url: str, slug: str) -> str:
        """Download ``image_url`` and store it under a name derived from ``slug``.

        The same slug and URL always map to the same file, so repeated calls
        overwrite. Returns the site-relative path.
        """
        if not is_http_url(image_url):
            raise ImagePersistError(image_url, "not an http(s) URL")

        try:
            data, content_type = await asyncio.wait_for(
                self._download(image_url), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise ImagePersistError(image_url, "timed out") from exc
        if not data:
            raise ImagePersistError(image_url, "empty response")
        if not looks_like_image(content_type, data):
            raise ImagePersistError(
                image_url, f"not an image (Content-Type={content_type or 'missing'})"
            )

        filename = self.filename_for(image_url, slug)
        try:
            return await self.store.put(filename, data)
        except OSError as exc:
            raise ImagePersistError(image_url, f"write failed: {exc}") from exc

    async def _download(self, image_url: str) -> tuple[bytes, str]:
        try:
            async with self.client.stream(
                "GET",
                image_url,
                headers={"User-Agent": settings.user_agent},
                timeout=self.timeout,
            ) as response:
                if not response.is_success:
                    raise ImagePersistError(image_url, f"HTTP {response.status_code}")
                buffer = bytearray()
                async for chunk in response.aiter_bytes():
                    buffer.extend(chunk)
                    if len(buffer) > self.max_bytes:
                        raise ImagePersistError(
                            image_url, f"larger than {self.max_bytes} bytes"
                        )
                return bytes(buffer), response.headers.get("Content-Type", "")
        except httpx.TimeoutException as exc:
            raise ImagePersistError(image_url, "timed out") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ImagePersistError(
                image_url, str(exc) or exc.__class__.__name__
            ) from exc
