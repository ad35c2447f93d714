from link_preview.services.domain import domain_of
from link_preview.services.extractor import ExtractedMetadata, extract
from link_preview.services.fetcher import PageFetcher, build_client
from link_preview.services.images import (
    FileSystemImageStore,
    ImagePersister,
    ImageStore,
    MemoryImageStore,
)
from link_preview.services.reconcile import Reconciler, ReconcileReport
from link_preview.services.unfurl import Unfurler

__all__ = [
    "ExtractedMetadata",
    "FileSystemImageStore",
    "ImagePersister",
    "ImageStore",
    "MemoryImageStore",
    "PageFetcher",
    "ReconcileReport",
    "Reconciler",
    "Unfurler",
    "build_client",
    "domain_of",
    "extract",
]
