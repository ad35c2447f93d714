from link_preview.models.block import ContentBlock, blocks_from_body
from link_preview.models.preview import PreviewRecord

__all__ = [
    "ContentBlock",
    "PreviewRecord",
    "blocks_from_body",
]
