"""Prompt composition helpers."""

from __future__ import annotations

from typing import Any, Mapping

import yaml


def make_user_prompt(inputs: Mapping[str, Any]) -> str:
    """
    Renders a step's input record as a stable YAML payload. Consistency helps prefix-caching backends.
    """
    text = inputs.get("text")
    rest = {key: value for key, value in inputs.items() if key != "text"}

    lines: list[str] = []
    if isinstance(text, str):
        if not rest:
            return text.rstrip() + "\n"
        lines.extend(["## Input Content", text, ""])
    else:
        rest = dict(inputs)

    if rest:
        inputs_yaml = yaml.safe_dump(
            rest,
            allow_unicode=False,
            default_flow_style=False,
            sort_keys=True,
        ).rstrip()
        lines.extend(["## Step Inputs (YAML)", inputs_yaml])

    return "\n".join(lines).rstrip() + "\n"


def build_step_instructions(instructions: str, step_prompt: str) -> str:
    if not instructions:
        return f"## Step Instructions\n{step_prompt}"
    return f"{instructions}\n\n## Step Instructions\n{step_prompt}"
