from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from link_preview.models.preview import PreviewRecord

LINK_PREVIEW_BLOCK = "link-preview"
PARAGRAPH_BLOCK = "paragraph"

BARE_URL_PATTERN = re.compile(r"^https?://[^\s<>\"']+$", re.IGNORECASE)
PARAGRAPH_SPLIT_PATTERN = re.compile(r"\n\s*\n")


class ContentBlock(BaseModel):
    """A content block carrying ``preview``-prefixed link preview fields.

    Keys other than the preview fields belong to the content system and pass
    through untouched.
    """

    preview_url: Optional[str] = Field(default=None, alias="previewUrl")
    preview_title: Optional[str] = Field(default=None, alias="previewTitle")
    preview_description: Optional[str] = Field(
        default=None, alias="previewDescription"
    )
    preview_image: Optional[str] = Field(default=None, alias="previewImage")
    preview_favicon: Optional[str] = Field(default=None, alias="previewFavicon")
    preview_domain: Optional[str] = Field(default=None, alias="previewDomain")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def is_resolved(self) -> bool:
        return bool(self.preview_title)

    @property
    def needs_preview(self) -> bool:
        return bool((self.preview_url or "").strip()) and not self.is_resolved

    def apply_preview(self, record: PreviewRecord) -> None:
        """Copy the record's fields onto the block.

        Fields the record lacks keep whatever the author already entered.
        """
        # No await may happen in here: readers must never see half a preview.
        for name in ("title", "description", "image", "favicon", "domain"):
            value = getattr(record, name)
            if value is not None:
                setattr(self, f"preview_{name}", value)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def blocks_from_body(text: str) -> list[ContentBlock]:
    """Split a plain-text body into paragraph blocks.

    A paragraph holding nothing but a bare http(s) URL becomes a link preview
    block waiting to be unfurled.
    """
    blocks: list[ContentBlock] = []
    for paragraph in PARAGRAPH_SPLIT_PATTERN.split(text or ""):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if BARE_URL_PATTERN.match(paragraph):
            blocks.append(
                ContentBlock(type=LINK_PREVIEW_BLOCK, previewUrl=paragraph)
            )
        else:
            blocks.append(ContentBlock(type=PARAGRAPH_BLOCK, text=paragraph))
    return blocks
