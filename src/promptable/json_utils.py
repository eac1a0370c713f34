"""JSON parsing helpers."""

from __future__ import annotations

import json
from typing import Any


def extract_first_json_object(text: str) -> dict[str, Any]:
    """
    Decode the first JSON object embedded in text.
    Models sometimes wrap structured replies in prose or code fences.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    raise ValueError("No JSON object found in model output.")
