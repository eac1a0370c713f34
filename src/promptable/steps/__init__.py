"""Concrete step variants."""

from promptable.steps.function_step import FunctionStep
from promptable.steps.prompt_step import PromptStep

__all__ = ["FunctionStep", "PromptStep"]
