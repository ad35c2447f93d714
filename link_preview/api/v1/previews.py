import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from link_preview.api.deps import get_image_persister, get_unfurler, require_api_key
from link_preview.exceptions import ImagePersistError
from link_preview.schemas import (
    ImagePersistRead,
    ImagePersistRequest,
    PreviewRead,
    PreviewResolveRequest,
)
from link_preview.services.images import ImagePersister
from link_preview.services.unfurl import Unfurler

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/previews",
    tags=["previews"],
    dependencies=[Depends(require_api_key)],
)


@router.post("/resolve", response_model=PreviewRead)
async def resolve_preview(
    payload: PreviewResolveRequest,
    unfurler: Annotated[Unfurler, Depends(get_unfurler)],
) -> PreviewRead:
    """Resolve preview metadata for a URL. The image is left as a remote URL."""
    record = await unfurler.resolve(str(payload.url))
    return PreviewRead.model_validate(record)


@router.post("/images", response_model=ImagePersistRead)
async def persist_image(
    payload: ImagePersistRequest,
    persister: Annotated[ImagePersister, Depends(get_image_persister)],
) -> ImagePersistRead:
    """Download an image and store it under the slug, returning its site path."""
    try:
        path = await persister.persist(str(payload.image_url), payload.slug)
    except ImagePersistError as exc:
        logger.warning("Image persist request failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return ImagePersistRead(path=path)
