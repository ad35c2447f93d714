"""Head-tag metadata extraction over a bounded HTML prefix.

Only ``<meta>``, ``<link>`` and ``<title>`` are inspected, so a tag scanner is
enough; no document tree is ever built. Tags cut off by the end of the
prefix never match and simply leave their field empty.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

TAG_PATTERN = re.compile(
    r"""<(meta|link)\b((?:"[^"]*"|'[^']*'|[^'"<>])*)>""", re.IGNORECASE
)
ATTRIBUTE_PATTERN = re.compile(
    r"""([^\s"'<>/=]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+)))?""",
)
TITLE_PATTERN = re.compile(
    r"<title\b[^<>]*>(.*?)</title\s*>", re.IGNORECASE | re.DOTALL
)
WHITESPACE_PATTERN = re.compile(r"\s+")

OG_TITLE = ("og:title",)
OG_DESCRIPTION = ("og:description",)
OG_IMAGE = ("og:image", "og:image:url", "og:image:secure_url")


@dataclass
class ExtractedMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    favicon: Optional[str] = None


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = WHITESPACE_PATTERN.sub(" ", html.unescape(value)).strip()
    return value or None


def parse_attributes(raw: str) -> Dict[str, str]:
    """Parse the attribute section of a start tag.

    Names are lowercased; the first occurrence of a repeated attribute wins.
    Valueless attributes map to an empty string.
    """
    attributes: Dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(raw):
        name = match.group(1).lower()
        if name in attributes:
            continue
        value = next(
            (group for group in match.group(2, 3, 4) if group is not None), ""
        )
        attributes[name] = value
    return attributes


def iter_tags(document: str, name: str) -> Iterator[Dict[str, str]]:
    for match in TAG_PATTERN.finditer(document):
        if match.group(1).lower() == name:
            yield parse_attributes(match.group(2))


def _meta_content(
    metas: List[Dict[str, str]], keys: tuple, *, attrs: tuple
) -> Optional[str]:
    for key in keys:
        for meta in metas:
            if any(meta.get(attr, "").strip().lower() == key for attr in attrs):
                content = _clean_text(meta.get("content"))
                if content:
                    return content
    return None


def _page_title(document: str) -> Optional[str]:
    match = TITLE_PATTERN.search(document)
    return _clean_text(match.group(1)) if match else None


def _icon_rank(rel: str) -> Optional[int]:
    """Rank a link rel by icon preference, lower is better; None if not an icon."""
    tokens = set(rel.lower().split())
    if "icon" in tokens:
        return 1 if "shortcut" in tokens else 0
    if "apple-touch-icon" in tokens:
        return 2
    return None


def _favicon(links: List[Dict[str, str]]) -> Optional[str]:
    best: Optional[str] = None
    best_rank: Optional[int] = None
    for link in links:
        rank = _icon_rank(link.get("rel", ""))
        href = _clean_text(link.get("href"))
        if rank is None or not href:
            continue
        if best_rank is None or rank < best_rank:
            best, best_rank = href, rank
    return best


def extract(document: str) -> ExtractedMetadata:
    """Pull preview fields out of an HTML prefix; missing fields stay ``None``."""
    if not document:
        return ExtractedMetadata()

    metas = list(iter_tags(document, "meta"))
    links = list(iter_tags(document, "link"))

    return ExtractedMetadata(
        title=_meta_content(metas, OG_TITLE, attrs=("property", "name"))
        or _page_title(document),
        description=_meta_content(metas, OG_DESCRIPTION, attrs=("property", "name"))
        or _meta_content(metas, ("description",), attrs=("name",)),
        image=_meta_content(metas, OG_IMAGE, attrs=("property", "name")),
        favicon=_favicon(links),
    )
