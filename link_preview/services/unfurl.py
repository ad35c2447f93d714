import logging
from typing import Optional
from urllib.parse import urljoin

from link_preview.exceptions import FetchError
from link_preview.models.preview import PreviewRecord
from link_preview.services.domain import domain_of
from link_preview.services.extractor import extract
from link_preview.services.fetcher import PageFetcher

logger = logging.getLogger(__name__)


def absolutize(base_url: str, reference: Optional[str]) -> Optional[str]:
    if not reference:
        return None
    try:
        return urljoin(base_url, reference)
    except ValueError:
        return None


class Unfurler:
    """Turns a URL into a PreviewRecord. Images are left remote."""

    def __init__(self, fetcher: PageFetcher) -> None:
        self.fetcher = fetcher

    async def resolve(self, url: str) -> PreviewRecord:
        url = url.strip()
        domain = domain_of(url)
        try:
            document = await self.fetcher.fetch(url)
        except FetchError as exc:
            logger.warning("Falling back to domain-only preview: %s", exc)
            return PreviewRecord(url=url, domain=domain)

        metadata = extract(document)
        record = PreviewRecord(
            url=url,
            title=metadata.title,
            description=metadata.description,
            image=absolutize(url, metadata.image),
            favicon=absolutize(url, metadata.favicon),
            domain=domain,
        )
        if not record.is_resolved:
            logger.info("No title found for %s", url)
        return record
