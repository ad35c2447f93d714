"""Build-time pass that fills in link preview blocks lacking metadata."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from link_preview.config import settings
from link_preview.exceptions import ImagePersistError
from link_preview.models.block import ContentBlock
from link_preview.models.preview import PreviewRecord
from link_preview.services.images import ImagePersister
from link_preview.services.unfurl import Unfurler

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    """Counts from one reconciliation run."""

    scanned: int = 0
    resolved: int = 0
    unresolved: int = 0
    skipped: int = 0
    images_failed: int = 0


class Reconciler:
    """Resolves every block with a preview URL but no title.

    A block counts as resolved once it has a title, and resolved blocks are
    never touched again. Pages without any title are therefore retried on
    every run.
    """

    def __init__(
        self,
        unfurler: Unfurler,
        persister: ImagePersister,
        max_concurrency: Optional[int] = None,
    ) -> None:
        self.unfurler = unfurler
        self.persister = persister
        self.max_concurrency = max(1, max_concurrency or settings.max_concurrency)
        self.last_report = ReconcileReport()

    async def reconcile(self, blocks: List[ContentBlock]) -> List[ContentBlock]:
        report = ReconcileReport(scanned=len(blocks))
        pending = [block for block in blocks if block.needs_preview]
        report.skipped = len(blocks) - len(pending)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(block: ContentBlock) -> None:
            async with semaphore:
                await self._reconcile_block(block, report)

        await asyncio.gather(*(run(block) for block in pending))

        self.last_report = report
        logger.info(
            "Reconciled link previews: %d scanned, %d resolved, %d unresolved, %d skipped",
            report.scanned,
            report.resolved,
            report.unresolved,
            report.skipped,
        )
        return blocks

    async def _reconcile_block(
        self, block: ContentBlock, report: ReconcileReport
    ) -> None:
        record = await self.unfurler.resolve(block.preview_url or "")
        if record.image:
            record = await self._persist_image(record, report)

        block.apply_preview(record)
        if record.is_resolved:
            report.resolved += 1
        else:
            report.unresolved += 1

    async def _persist_image(
        self, record: PreviewRecord, report: ReconcileReport
    ) -> PreviewRecord:
        slug = record.title or record.url
        try:
            path = await self.persister.persist(record.image or "", slug)
        except ImagePersistError as exc:
            logger.warning("Keeping preview without image: %s", exc)
            report.images_failed += 1
            return record.model_copy(update={"image": None})
        return record.model_copy(update={"image": path})
