from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional


MARKER_RE = re.compile(r"<!--\s+(/?)wp:([a-z][a-z0-9_-]*(?:/[a-z][a-z0-9_-]*)?)(?:\s+(\{.*?\}))?\s+(/?)-->", re.S)
BLOCK_DOCUMENT_RE = re.compile(r"\A\s*<!--\s+wp:[a-z]")


# --- Builders for block comment delimiters ---

def opener_body(name: str, attrs: Optional[Dict[str, Any]] = None) -> str:
    """Text between ``<!--`` and ``-->`` of an opening marker."""
    if attrs:
        return f" wp:{name} {json.dumps(attrs, separators=(',', ':'))} "
    return f" wp:{name} "


def closer_body(name: str) -> str:
    return f" /wp:{name} "


def open_marker(name: str, attrs: Optional[Dict[str, Any]] = None) -> str:
    return f"<!--{opener_body(name, attrs)}-->"


def close_marker(name: str) -> str:
    return f"<!--{closer_body(name)}-->"


def is_opener(body: str, name: str) -> bool:
    """True when comment text ``body`` is an opening marker of block ``name``."""
    pattern = r"\s*wp:" + re.escape(name) + r"(?:\s+\{.*\})?\s*"
    return re.fullmatch(pattern, body or "", re.S) is not None


def is_closer(body: str, name: str) -> bool:
    return re.fullmatch(r"\s*/wp:" + re.escape(name) + r"\s*", body or "") is not None


# --- Inspection ---

def is_block_document(html: str) -> bool:
    """True when the first thing in ``html`` is a block marker."""
    return bool(BLOCK_DOCUMENT_RE.match(html or ""))


def block_names(html: str) -> List[str]:
    """Names of all opened blocks, in document order."""
    return [m.group(2) for m in MARKER_RE.finditer(html or "") if not m.group(1) and not m.group(4)]


def unbalanced_markers(html: str) -> List[str]:
    """
    Return a description of every marker that is not properly closed (or
    closed without being opened).  An empty list means the block structure
    is well formed.
    """
    problems: List[str] = []
    stack: List[str] = []
    for m in MARKER_RE.finditer(html or ""):
        closing, name, _attrs, self_closing = m.groups()
        if self_closing:
            continue
        if not closing:
            stack.append(name)
        elif stack and stack[-1] == name:
            stack.pop()
        else:
            problems.append(f"unexpected close of {name}")
    problems.extend(f"unclosed {name}" for name in stack)
    return problems
