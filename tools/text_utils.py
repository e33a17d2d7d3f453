"""Text utilities: upstream input flattening and label parsing."""

import json
import re
from typing import Any

_CHAPTER_RE = re.compile(r"chapter\s*(\d+)", re.IGNORECASE)
_CH_RE = re.compile(r"ch(\d+)", re.IGNORECASE)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _flatten_item(item: Any) -> str:
    if isinstance(item, dict):
        if item.get("output") is not None:
            output = item["output"]
            return output if isinstance(output, str) else _dumps(output)
        return _dumps(item)
    if item is None:
        return ""
    if hasattr(item, "output") and getattr(item, "output") is not None:
        return _flatten_item({"output": getattr(item, "output")})
    return item if isinstance(item, str) else str(item)


def flatten_input(value: Any) -> str:
    """Coerce upstream payload(s) into the text handed to a model.

    An object with an ``output`` field yields that field (JSON-encoded when
    it is not a string); a list yields its flattened items joined by
    newlines with empty items dropped; ``None`` yields ``""``; anything
    else is stringified.
    """
    if isinstance(value, (list, tuple)):
        return "\n".join(part for part in (_flatten_item(v) for v in value) if part)
    return _flatten_item(value)


def unwrap_text(value: Any, depth: int = 2) -> str:
    """Text of ``value``, looking through up to ``depth`` nested ``output`` fields.

    Returns ``""`` when no string is found.
    """
    current = value
    for _ in range(depth + 1):
        if isinstance(current, str):
            return current
        if isinstance(current, dict):
            current = current.get("output")
        elif current is not None and hasattr(current, "output"):
            current = getattr(current, "output")
        else:
            return ""
    return current if isinstance(current, str) else ""


def extract_chapter_number(label: str, default: int = 1) -> int:
    """Chapter number from labels such as ``Chapter 3`` or ``ch3``."""
    if not label:
        return default
    match = _CHAPTER_RE.search(label) or _CH_RE.search(label)
    return int(match.group(1)) if match else default


def truncate(text: str, limit: int = 300) -> str:
    """Shorten text for log lines."""
    if not text or len(text) <= limit:
        return text or ""
    return text[:limit] + "..."
