class LinkPreviewError(Exception):
    """Base error for link preview resolution."""


class FetchError(LinkPreviewError):
    """Raised when a page cannot be retrieved as HTML."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ImagePersistError(LinkPreviewError):
    """Raised when a preview image cannot be downloaded or written."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to persist image {url}: {reason}")
        self.url = url
        self.reason = reason
