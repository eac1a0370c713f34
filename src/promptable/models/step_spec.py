"""Pydantic model for a single chain step."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class StepSpec(BaseModel):
    name: str
    kind: Literal["text", "structured", "function"] = "text"
    prompt_section: Optional[str] = None
    output_key: str = "text"
    output_schema: Optional[str] = None  # alias registered in ChainSpec.schemas
    input_schema: Optional[str] = None
    outputs_schema: Optional[str] = None  # checks the mapped outputs; output_schema types the model reply
    function: Optional[str] = None  # "module:function" for kind == "function"
    output_map: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "StepSpec":
        if self.kind == "function" and not self.function:
            raise ValueError(f"Step {self.name} is a function step but missing function.")
        if self.kind == "structured" and not self.output_schema:
            raise ValueError(f"Step {self.name} is structured but missing output_schema.")
        if self.kind != "function" and not self.prompt_section:
            self.prompt_section = f"step:{self.name}"
        return self
