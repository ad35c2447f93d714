from link_preview.schemas.preview import (
    ImagePersistRead,
    ImagePersistRequest,
    PreviewRead,
    PreviewResolveRequest,
)

__all__ = [
    "ImagePersistRead",
    "ImagePersistRequest",
    "PreviewRead",
    "PreviewResolveRequest",
]
