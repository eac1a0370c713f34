"""Input/output helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def load_inputs(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() != ".json":
        return {"text": text}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"JSON input {path} must contain an object, got {type(data).__name__}.")
    return data


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)
