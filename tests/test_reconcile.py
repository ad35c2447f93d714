import asyncio
from typing import List

import httpx

from link_preview.models.block import ContentBlock
from link_preview.services.fetcher import PageFetcher
from link_preview.services.images import ImagePersister, MemoryImageStore
from link_preview.services.reconcile import Reconciler
from link_preview.services.unfurl import Unfurler

from .conftest import ARTICLE_HTML

POST_URL = "https://example.com/post"
IMAGE_URL = "https://example.com/img/cover.png"


def make_reconciler(client: httpx.AsyncClient, store: MemoryImageStore, **kwargs):
    return Reconciler(
        Unfurler(PageFetcher(client)), ImagePersister(client, store), **kwargs
    )


def reconcile(reconciler: Reconciler, blocks: List[ContentBlock]) -> List[ContentBlock]:
    return asyncio.run(reconciler.reconcile(blocks))


def test_unresolved_block_is_filled_with_persisted_image(web):
    web.html(POST_URL, ARTICLE_HTML)
    web.image(IMAGE_URL)
    store = MemoryImageStore()
    blocks = [ContentBlock(type="link-preview", previewUrl=POST_URL)]

    result = reconcile(make_reconciler(web.client(), store), blocks)

    assert result is blocks
    assert result[0].to_dict() == {
        "type": "link-preview",
        "previewUrl": POST_URL,
        "previewTitle": "Hello & welcome",
        "previewDescription": "A short post",
        "previewImage": "/images/link-previews/hello-welcome.png",
        "previewFavicon": "https://example.com/favicon.svg",
        "previewDomain": "example.com",
    }
    assert list(store.files) == ["/images/link-previews/hello-welcome.png"]


def test_second_pass_is_a_no_op(web):
    web.html(POST_URL, ARTICLE_HTML)
    web.image(IMAGE_URL)
    store = MemoryImageStore()
    reconciler = make_reconciler(web.client(), store)
    blocks = [ContentBlock(previewUrl=POST_URL)]

    reconcile(reconciler, blocks)
    first = [block.to_dict() for block in blocks]
    calls = len(web.requests)
    store.files.clear()

    reconcile(reconciler, blocks)

    assert [block.to_dict() for block in blocks] == first
    assert len(web.requests) == calls
    assert store.files == {}
    assert reconciler.last_report.skipped == 1
    assert reconciler.last_report.resolved == 0


def test_already_resolved_and_plain_blocks_are_skipped(web):
    blocks = [
        ContentBlock(type="paragraph", text="hello"),
        ContentBlock(previewUrl=POST_URL, previewTitle="Authored title"),
    ]
    reconcile(make_reconciler(web.client(), MemoryImageStore()), blocks)

    assert web.requests == []
    assert blocks[1].preview_title == "Authored title"
    assert blocks[1].preview_domain is None


def test_image_failure_keeps_other_fields(web):
    web.html(POST_URL, ARTICLE_HTML)
    web.fail(IMAGE_URL)
    store = MemoryImageStore()
    reconciler = make_reconciler(web.client(), store)
    blocks = [ContentBlock(previewUrl=POST_URL)]

    reconcile(reconciler, blocks)

    block = blocks[0]
    assert block.preview_title == "Hello & welcome"
    assert block.preview_description == "A short post"
    assert block.preview_favicon == "https://example.com/favicon.svg"
    assert block.preview_image is None
    assert store.files == {}
    assert reconciler.last_report.images_failed == 1


def test_unreachable_source_renders_domain_only_and_stays_unresolved(web):
    reconciler = make_reconciler(web.client(), MemoryImageStore())
    blocks = [ContentBlock(previewUrl="https://www.down.example/x")]

    reconcile(reconciler, blocks)
    assert blocks[0].to_dict() == {
        "previewUrl": "https://www.down.example/x",
        "previewDomain": "down.example",
    }
    assert blocks[0].needs_preview
    assert reconciler.last_report.unresolved == 1

    # Titleless blocks are retried on the next run
    reconcile(reconciler, blocks)
    assert len(web.requests) == 2


def test_slug_falls_back_to_url_without_title(web):
    web.html(POST_URL, '<meta property="og:image" content="/img/cover.png">')
    web.image(IMAGE_URL)
    store = MemoryImageStore()
    blocks = [ContentBlock(previewUrl=POST_URL)]

    reconcile(make_reconciler(web.client(), store), blocks)

    assert blocks[0].preview_image == "/images/link-previews/https-example-com-post.png"


def test_fan_out_is_bounded():
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(
            200,
            headers={"Content-Type": "text/html"},
            text=f"<title>{request.url.path}</title>",
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    blocks = [ContentBlock(previewUrl=f"https://example.com/{i}") for i in range(8)]

    reconcile(make_reconciler(client, MemoryImageStore(), max_concurrency=2), blocks)

    assert peak == 2
    assert [block.preview_title for block in blocks] == [f"/{i}" for i in range(8)]
