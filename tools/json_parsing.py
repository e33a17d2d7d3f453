"""Best-effort JSON extraction from free-form model text.

Two stages: strip known wrappers (Markdown code fences), then locate the
outermost bracket pair and parse it strictly, with a lenient retry that
tolerates raw control characters inside strings.
"""

import json
import re
from typing import Any

from config.exceptions import ParsingError

# Precompiled regex for fenced blocks anywhere in the text
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)
_LEADING_FENCE_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\s*```\s*$")

# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings; models frequently produce these instead of proper \n escapes.
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str) -> Any:
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    return _LENIENT_DECODER.decode(text)


def strip_code_fences(text: str) -> str:
    """Remove a wrapping Markdown code fence (```json ... ```), if any."""
    cleaned = text.strip()
    match = _JSON_FENCE_RE.search(cleaned)
    if match and cleaned.startswith("```"):
        return match.group(1).strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned)
    return _TRAILING_FENCE_RE.sub("", cleaned).strip()


def _slice_between(text: str, open_char: str, close_char: str) -> str:
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end == -1 or end <= start:
        raise ParsingError(f"No JSON {'array' if open_char == '[' else 'object'} found in model output", text)
    return text[start:end + 1]


def _decode(text: str, open_char: str, close_char: str, expected: type) -> Any:
    cleaned = strip_code_fences(text or "")

    # Direct parse first, unwrapping a double-encoded JSON string once.
    # ValueError covers JSONDecodeError and the int digit limit; RecursionError
    # comes from very deep nesting.
    try:
        result = _try_loads(cleaned)
        if isinstance(result, str):
            result = _try_loads(result)
        if isinstance(result, expected):
            return result
    except (ValueError, RecursionError):
        pass

    candidate = _slice_between(cleaned, open_char, close_char)
    try:
        result = _try_loads(candidate)
    except (ValueError, RecursionError) as e:
        reason = getattr(e, "msg", None) or str(e) or type(e).__name__
        raise ParsingError(f"Malformed JSON in model output: {reason}", text) from e
    if not isinstance(result, expected):
        raise ParsingError(f"Parsed output is not a JSON {expected.__name__}", text)
    return result


def parse_json_object(text: str) -> dict:
    """Extract a JSON object from model text.

    Raises:
        ParsingError: If no object can be recovered.
    """
    return _decode(text, "{", "}", dict)


def parse_json_array(text: str) -> list:
    """Extract a JSON array from model text.

    Raises:
        ParsingError: If no array can be recovered.
    """
    return _decode(text, "[", "]", list)
