from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class PreviewResolveRequest(BaseModel):
    url: HttpUrl


class PreviewRead(BaseModel):
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    favicon: Optional[str] = None
    domain: str

    model_config = ConfigDict(from_attributes=True)


class ImagePersistRequest(BaseModel):
    image_url: HttpUrl = Field(alias="imageUrl")
    slug: str = Field(min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class ImagePersistRead(BaseModel):
    path: str
