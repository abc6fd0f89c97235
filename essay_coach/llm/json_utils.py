"""JSON extraction and repair for examiner replies.

Models asked for JSON still wrap it in code fences, prepend commentary or
leave trailing commas. This module pulls out the outermost JSON fragment and
repairs it before parsing.
"""

from __future__ import annotations

import json
from typing import Any

from json_repair import repair_json


def _fragment_bounds(text: str) -> tuple[int, int]:
    """Locate the outermost object or array, whichever opens first."""
    start_obj = text.find("{")
    start_arr = text.find("[")

    if start_obj == -1 and start_arr == -1:
        raise ValueError("Response text does not contain JSON object or array delimiters.")

    if start_obj == -1 or (start_arr != -1 and start_arr < start_obj):
        start, end_char = start_arr, "]"
    else:
        start, end_char = start_obj, "}"

    end = text.rfind(end_char)
    if end == -1 or end <= start:
        raise ValueError("Response text does not contain matching JSON delimiters.")
    return start, end


def parse_json_response(text: str) -> Any:
    """Extract, repair and parse the JSON payload in ``text``.

    Raises:
        ValueError: if ``text`` is not a string or holds no JSON delimiters
        json.JSONDecodeError: if the repaired fragment still cannot be parsed

    Example:
        >>> parse_json_response('Result: ```json\\n{"band_score": 6.5,}\\n```')
        {'band_score': 6.5}
    """
    if not isinstance(text, str):
        raise ValueError(f"Expected string input, got {type(text)}")

    start, end = _fragment_bounds(text)
    repaired = repair_json(text[start : end + 1])
    return json.loads(repaired)
