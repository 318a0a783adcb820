"""Text helpers including keyword-bounded segmentation."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from docscreener.models import Segment

LOGGER = logging.getLogger(__name__)


def split_by_keywords(text: str, keywords: Sequence[str]) -> List[Segment]:
    """Split text into ordered segments at the first match of each keyword.

    The text is lowercased before matching and the segments carry the
    lowercased text. Keywords are consumed in list order: each one that is
    found in the remaining text closes a segment right after its first
    occurrence, later occurrences stay in the remainder. Whatever is left
    after the last keyword becomes the final segment, so the result always
    holds ``matched + 1`` segments and concatenates back to the normalized text.
    """
    remainder = text.lower()
    pieces: List[str] = []

    for keyword in keywords:
        needle = keyword.lower()
        if not needle:
            continue
        position = remainder.find(needle)
        if position < 0:
            LOGGER.debug("Keyword %r not found", keyword)
            continue
        end = position + len(needle)
        pieces.append(remainder[:end])
        remainder = remainder[end:]

    pieces.append(remainder)
    return [Segment(index=index, text=piece) for index, piece in enumerate(pieces)]


def parse_keywords(raw: str | None) -> List[str]:
    """Parse the comma-separated keyword form, dropping blank entries."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())
