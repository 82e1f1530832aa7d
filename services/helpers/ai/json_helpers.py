import json
import re
from typing import Any, Dict, List

_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(s: str) -> str:
    """Drop every Markdown code fence marker, with or without a ``json`` tag."""
    return _FENCE_RE.sub("", s or "").strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a model reply that should be a single JSON object.
    Raises json.JSONDecodeError on malformed JSON and ValueError when the
    top-level value is not an object.
    """
    obj = json.loads(strip_code_fences(text))
    if not isinstance(obj, dict):
        raise ValueError("Expected a JSON object")
    return obj


def parse_json_array(text: str) -> List[Any]:
    """Same as parse_json_object, for replies that should be a JSON array."""
    arr = json.loads(strip_code_fences(text))
    if not isinstance(arr, list):
        raise ValueError("Expected a JSON array")
    return arr
