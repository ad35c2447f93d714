"""Command-line entry point for build-time link preview resolution."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, List, Optional, Sequence

from link_preview.config import settings
from link_preview.exceptions import ImagePersistError
from link_preview.logging_config import setup_logging
from link_preview.models.block import ContentBlock
from link_preview.services.fetcher import PageFetcher, build_client
from link_preview.services.images import (
    ImagePersister,
    ImageStore,
    MemoryImageStore,
    default_image_store,
)
from link_preview.services.reconcile import Reconciler
from link_preview.services.unfurl import Unfurler

logger = logging.getLogger("link_preview.cli")

EXIT_BAD_INPUT = 2
EXIT_WRITE_FAILED = 3


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve link preview metadata and persist preview images.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser(
        "resolve", help="Print the preview record for a single URL as JSON"
    )
    resolve_parser.add_argument("url", help="URL to unfurl")
    resolve_parser.add_argument(
        "--persist",
        action="store_true",
        help="Download the preview image into the public directory",
    )

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Fill in unresolved link preview blocks of a content file"
    )
    reconcile_parser.add_argument(
        "content",
        type=Path,
        help='JSON file holding a list of blocks or {"blocks": [...]}',
    )
    reconcile_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the updated content (defaults to overwriting the input)",
    )
    reconcile_parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.max_concurrency,
        help="Number of blocks resolved at the same time",
    )
    reconcile_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep downloaded images in memory instead of writing them",
    )

    return parser.parse_args(list(sys.argv[1:] if argv is None else argv))


async def _resolve(url: str, persist: bool) -> dict:
    async with build_client() as client:
        record = await Unfurler(PageFetcher(client)).resolve(url)
        if persist and record.image:
            persister = ImagePersister(client, default_image_store())
            try:
                path = await persister.persist(record.image, record.title or record.url)
            except ImagePersistError as exc:
                logger.warning("Keeping preview without image: %s", exc)
                record = record.model_copy(update={"image": None})
            else:
                record = record.model_copy(update={"image": path})
    return record.model_dump()


def load_blocks(document: Any) -> List[ContentBlock]:
    raw_blocks = document["blocks"] if isinstance(document, dict) else document
    if not isinstance(raw_blocks, list):
        raise ValueError("expected a list of blocks")
    return [ContentBlock.model_validate(raw) for raw in raw_blocks]


def dump_blocks(document: Any, blocks: List[ContentBlock]) -> Any:
    serialized = [block.to_dict() for block in blocks]
    if isinstance(document, dict):
        return {**document, "blocks": serialized}
    return serialized


async def _reconcile(
    blocks: List[ContentBlock], concurrency: int, store: ImageStore
) -> Reconciler:
    async with build_client() as client:
        reconciler = Reconciler(
            Unfurler(PageFetcher(client)),
            ImagePersister(client, store),
            max_concurrency=concurrency,
        )
        await reconciler.reconcile(blocks)
    return reconciler


def _run_resolve(args: argparse.Namespace) -> int:
    record = asyncio.run(_resolve(args.url, args.persist))
    sys.stdout.write(json.dumps(record, indent=2, ensure_ascii=False) + "\n")
    return 0


def _run_reconcile(args: argparse.Namespace) -> int:
    try:
        document = json.loads(args.content.read_text(encoding="utf-8"))
        blocks = load_blocks(document)
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Cannot read blocks from %s: %s", args.content, exc)
        return EXIT_BAD_INPUT

    store: ImageStore = MemoryImageStore() if args.dry_run else default_image_store()
    start = time.perf_counter()
    reconciler = asyncio.run(_reconcile(blocks, args.concurrency, store))
    elapsed = time.perf_counter() - start

    output: Optional[Path] = args.output or args.content
    if not args.dry_run:
        try:
            output.write_text(
                json.dumps(dump_blocks(document, blocks), indent=2, ensure_ascii=False)
                + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("Cannot write content to %s: %s", output, exc)
            return EXIT_WRITE_FAILED
        logger.info("Saved content to %s", output)

    report = reconciler.last_report
    logger.info(
        "Finished in %.2fs (%d resolved, %d unresolved, %d already resolved, %d images failed)",
        elapsed,
        report.resolved,
        report.unresolved,
        report.skipped,
        report.images_failed,
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    if args.command == "resolve":
        return _run_resolve(args)
    return _run_reconcile(args)


if __name__ == "__main__":
    sys.exit(main())
