from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PreviewRecord(BaseModel):
    """Displayable metadata resolved for a single URL.

    ``image`` holds the remote image URL straight out of the resolver and
    the site-relative path once the image has been persisted. ``favicon`` is
    never persisted and stays a remote URL.
    """

    url: str = Field(min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    favicon: Optional[str] = None
    domain: str

    @field_validator("title", "description", "image", "favicon", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @property
    def is_resolved(self) -> bool:
        return self.title is not None
