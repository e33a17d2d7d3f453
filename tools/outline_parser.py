"""Outline extraction from model output."""

import logging
from typing import Any

from config.exceptions import ParsingError
from models.flow import OutlineEntry
from tools.json_parsing import parse_json_array

logger = logging.getLogger(__name__)

PARSE_FAILED_TITLE = "Outline parsing failed"


def _failure(summary: str) -> list[dict]:
    return [{"title": PARSE_FAILED_TITLE, "summary": summary}]


def extract_outline_from_model_output(raw_output: str) -> list[dict]:
    """Parse a chapter outline (JSON array) out of free-form model text.

    Never raises: any failure yields a single-entry outline whose title
    reports the parse failure.
    """
    if not raw_output or not raw_output.strip():
        return _failure("Model output was empty.")
    try:
        return parse_json_array(raw_output)
    except ParsingError as e:
        logger.warning("Failed to parse outline from model output: %s", e.message)
        if "No JSON array" in e.message:
            return _failure("No JSON array found in model output.")
        return _failure("Could not parse array. Model may have returned malformed or incomplete JSON.")


def is_parse_failure(outline: list[dict]) -> bool:
    """True for the single-entry outline produced when parsing failed."""
    return len(outline) == 1 and outline[0].get("title") == PARSE_FAILED_TITLE


def get_outline_entry_for_chapter(outline: Any, chapter_number: int) -> OutlineEntry:
    """Outline entry for a 1-based chapter number.

    ``outline`` may be the parsed list or the raw (possibly fenced) text an
    outline node produced. Missing or malformed entries resolve to a
    ``Chapter N`` title with an empty summary.
    """
    default = OutlineEntry(title=f"Chapter {chapter_number}", summary="")

    entries = outline
    if isinstance(outline, str):
        try:
            entries = parse_json_array(outline)
        except ParsingError as e:
            logger.warning("Outline lookup for chapter %d failed: %s", chapter_number, e.message)
            return default
    if not isinstance(entries, list) or chapter_number < 1 or chapter_number > len(entries):
        return default

    entry = entries[chapter_number - 1]
    if not isinstance(entry, dict):
        return default
    return OutlineEntry(
        title=str(entry.get("title") or default.title),
        summary=str(entry.get("summary") or ""),
    )
