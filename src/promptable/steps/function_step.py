"""Step backed by a plain Python callable."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from promptable.step import Step, StepRecord, ValidationMode

StepFunction = Callable[[StepRecord], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


class FunctionStep(Step):
    def __init__(
        self,
        name: str,
        func: StepFunction,
        output_map: Optional[Mapping[str, str]] = None,
        *,
        on_validation_failure: ValidationMode = "ignore",
        strict_validation: bool = False,
    ) -> None:
        super().__init__(
            name,
            output_map,
            on_validation_failure=on_validation_failure,
            strict_validation=strict_validation,
        )
        self.func: StepFunction = func

    async def compute(self, inputs: StepRecord, steps: Optional[Sequence[Step]] = None) -> Mapping[str, Any]:
        result = self.func(inputs)
        if inspect.isawaitable(result):
            result = await result
        if not isinstance(result, Mapping):
            raise TypeError(f"Step {self.name} must return a mapping, got {type(result).__name__}.")
        return result

    def step_metadata(self) -> dict[str, Any]:
        module = getattr(self.func, "__module__", None) or "<unknown>"
        qualname = getattr(self.func, "__qualname__", None) or type(self.func).__name__
        return {"kind": "function", "function": f"{module}:{qualname}"}
