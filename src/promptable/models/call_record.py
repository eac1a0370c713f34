"""Pydantic model for one recorded step invocation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class CallRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    inputs: Optional[dict[Any, Any]] = None
    outputs: Optional[dict[Any, Any]] = None

    def snapshot(self) -> dict[str, Any]:
        # An unfinished call has no "outputs" key.
        data = self.model_dump()
        for name in ("inputs", "outputs"):
            if name not in self.model_fields_set:
                data.pop(name, None)
        return data
