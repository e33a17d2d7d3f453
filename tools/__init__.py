"""Tools package: JSON extraction, outline parsing, text helpers, model client."""

from tools.json_parsing import parse_json_array, parse_json_object, strip_code_fences
from tools.model_client import ModelClient
from tools.outline_parser import extract_outline_from_model_output, get_outline_entry_for_chapter
from tools.text_utils import (
    extract_chapter_number,
    flatten_input,
    truncate,
    unwrap_text,
)

__all__ = [
    "ModelClient",
    "parse_json_array",
    "parse_json_object",
    "strip_code_fences",
    "extract_outline_from_model_output",
    "get_outline_entry_for_chapter",
    "extract_chapter_number",
    "flatten_input",
    "truncate",
    "unwrap_text",
]
