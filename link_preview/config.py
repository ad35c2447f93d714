from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    app_name: str = Field(
        default="Link Preview API",
        description="Application name",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Shared secret required in X-API-Key when set",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="Browser-like identity sent with every outbound request",
    )
    fetch_timeout: float = Field(
        default=10.0,
        description="Seconds allowed for fetching a page",
    )
    max_html_bytes: int = Field(
        default=100 * 1024,
        description="Bytes of a page read before the stream is abandoned",
    )
    image_timeout: float = Field(
        default=15.0,
        description="Seconds allowed for downloading a preview image",
    )
    max_image_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Largest preview image accepted",
    )
    public_dir: Path = Field(
        default=Path("public"),
        description="Directory served as the site root",
    )
    image_subdir: str = Field(
        default="images/link-previews",
        description="Directory under public_dir holding persisted preview images",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Blocks reconciled at the same time",
    )
    log_level: str = Field(default="INFO")
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LINK_PREVIEW_",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
