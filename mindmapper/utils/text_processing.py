"""Label cleanup and JSON extraction helpers."""

from __future__ import annotations

import json
import re
import unicodedata
from typing import Any

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)```", re.IGNORECASE)


def normalize_text(text: str) -> str:
    """Normalize unicode, collapse whitespace, strip."""
    text = unicodedata.normalize("NFKC", text)
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def normalize_label(label: str | None) -> str:
    """Clean a user-typed node label. Returns "" when nothing printable is left."""
    if not label:
        return ""
    return normalize_text(label)


def truncate_content(text: str, max_chars: int = 20_000) -> str:
    """Truncate text to max chars, adding a marker if truncated."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n\n[... content truncated ...]"


def extract_json_payload(content: str) -> Any:
    """Parse JSON out of a model reply, preferring the first fenced code block.

    Raises ``json.JSONDecodeError`` when no JSON can be parsed.
    """
    match = _FENCED_BLOCK.search(content)
    raw = match.group(1) if match else content
    return json.loads(raw.strip())
