"""Sequential runner for a list of steps."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic_ai.models import Model

from promptable.loader import import_symbol, resolve_schema
from promptable.models.loaded_chain_file import LoadedChainFile
from promptable.models.step_spec import StepSpec
from promptable.step import Step, StepRecord
from promptable.steps.function_step import FunctionStep
from promptable.steps.prompt_step import PromptStep, build_model, build_model_settings


logger = logging.getLogger(__name__)


class Chain:
    def __init__(self, name: str, steps: Sequence[Step]) -> None:
        self.name: str = name
        self.steps: list[Step] = list(steps)

    async def run(self, inputs: Mapping[str, Any]) -> StepRecord:
        record: StepRecord = dict(inputs)
        for step in self.steps:
            record = await step.run(record, steps=self.steps)
        logger.info("Chain %s finished with keys: %s", self.name, sorted(record))
        return record

    def trace(self) -> list[dict[str, Any]]:
        return [{"step": step.name, **step.serialize()} for step in self.steps]


def build_chain(loaded: LoadedChainFile, model: Model | None = None) -> Chain:
    spec = loaded.spec
    needs_model = any(step.kind != "function" for step in spec.steps)
    if model is None and needs_model:
        model = build_model(spec.model)
    steps = [_build_step(loaded, step_spec, model) for step_spec in spec.steps]
    return Chain(spec.name, steps)


def _build_step(loaded: LoadedChainFile, step_spec: StepSpec, model: Model | None) -> Step:
    spec = loaded.spec
    output_map = step_spec.output_map or None
    step: Step
    if step_spec.kind == "function":
        func = import_symbol(step_spec.function or "")
        if not callable(func):
            raise TypeError(f"Step {step_spec.name} function {step_spec.function!r} is not callable.")
        step = FunctionStep(step_spec.name, func, output_map, strict_validation=spec.strict_validation)
    else:
        if model is None:
            raise ValueError(f"Step {step_spec.name} needs a model.")
        output_type = None
        if step_spec.kind == "structured":
            output_type = resolve_schema(spec.schemas, step_spec.output_schema or "")
        step = PromptStep(
            step_spec.name,
            loaded.step_prompts[step_spec.prompt_section or ""],
            model,
            output_map,
            instructions=loaded.instructions,
            system_prompt=loaded.system_prompt,
            output_key=step_spec.output_key,
            output_type=output_type,
            model_settings=build_model_settings(spec.model),
            strict_validation=spec.strict_validation,
        )
    if step_spec.input_schema:
        step.inputs(resolve_schema(spec.schemas, step_spec.input_schema))
    if step_spec.outputs_schema:
        step.outputs(resolve_schema(spec.schemas, step_spec.outputs_schema))
    return step
