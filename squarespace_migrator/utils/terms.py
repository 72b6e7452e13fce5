from __future__ import annotations

from html import unescape
import re
from typing import Iterable, List


def normalize_label(value: str) -> str:
    """Unescape HTML entities and collapse inner whitespace.

    Preserves original casing but trims leading/trailing spaces
    and converts sequences of whitespace to a single space.
    """
    if not value:
        return ""
    text = unescape(value).strip()
    text = re.sub(r"\s+", " ", text)
    return text


def normalize_terms(labels: Iterable[str]) -> List[str]:
    """
    Normalize category or tag labels taken from the export.

    - Unescapes HTML entities (e.g., '&amp;' -> '&')
    - Trims spaces, collapses inner whitespace
    - Deduplicates case-insensitively while preserving first-seen casing

    Returns the cleaned labels in their original order.
    """
    seen_lower = set()
    result: List[str] = []
    for raw in labels or []:
        label = normalize_label(raw)
        key = label.lower()
        if label and key not in seen_lower:
            seen_lower.add(key)
            result.append(label)
    return result

