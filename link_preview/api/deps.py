from typing import Optional

import httpx
from fastapi import Depends, Header, HTTPException, Request, status

from link_preview.config import settings
from link_preview.services.fetcher import PageFetcher
from link_preview.services.images import ImagePersister, default_image_store
from link_preview.services.unfurl import Unfurler


async def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def get_unfurler(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Unfurler:
    return Unfurler(PageFetcher(client))


async def get_image_persister(
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ImagePersister:
    return ImagePersister(client, default_image_store())


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    """Check the X-API-Key header when a shared secret is configured."""
    if settings.api_key and x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )
