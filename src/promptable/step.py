"""Base class for pipeline steps."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Callable, Literal, Mapping, Optional, Sequence, TypeAlias

from pydantic import BaseModel, TypeAdapter, ValidationError

from promptable.call_history import CallHandle, CallHistory


logger = logging.getLogger(__name__)

StepRecord: TypeAlias = dict[str, Any]
ValidationMode: TypeAlias = Literal["raise", "ignore"]


class StepValidationError(ValueError):
    def __init__(self, step_name: str, stage: str, fields: list[str], detail: str) -> None:
        self.step_name = step_name
        self.stage = stage
        self.fields = fields
        where = ", ".join(fields) if fields else "record"
        super().__init__(f"Invalid {stage} at step {step_name} ({where}): {detail}")


def schema_parser(schema: Any) -> Callable[[Mapping[str, Any]], Any]:
    """
    Resolve the parse callable of a schema capability.

    Accepts a pydantic model class, a TypeAdapter, or any object with a
    ``parse(candidate)`` method.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_validate
    if isinstance(schema, TypeAdapter):
        return schema.validate_python
    parse = getattr(schema, "parse", None)
    if callable(parse):
        return parse
    raise TypeError(f"Unsupported schema {schema!r}: expected a BaseModel, TypeAdapter, or an object with parse().")


def parse_with_schema(schema: Any, candidate: Mapping[str, Any]) -> Any:
    return schema_parser(schema)(candidate)


def _error_fields(exc: Exception) -> list[str]:
    if not isinstance(exc, ValidationError):
        return []
    fields: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        if location and location not in fields:
            fields.append(location)
    return fields


class Step(ABC):
    """
    A named unit of work with an input/output record contract.

    ``run`` records the call, validates the inputs, delegates to ``compute``,
    renames output keys through ``output_map``, records the outputs and
    returns the inputs merged with the outputs.
    """

    def __init__(
        self,
        name: str,
        output_map: Optional[Mapping[str, str]] = None,
        *,
        on_validation_failure: ValidationMode = "ignore",
        strict_validation: bool = False,
    ) -> None:
        if on_validation_failure not in ("raise", "ignore"):
            raise ValueError(f"Unknown validation mode: {on_validation_failure!r}")
        self.name: str = name
        self._output_map: Optional[Mapping[str, str]] = (
            MappingProxyType(dict(output_map)) if output_map is not None else None
        )
        self.on_validation_failure: ValidationMode = "raise" if strict_validation else on_validation_failure
        self.calls: CallHistory = CallHistory(name)
        self._inputs_schema: Any = None
        self._outputs_schema: Any = None

    @property
    def output_map(self) -> Optional[Mapping[str, str]]:
        return self._output_map

    @property
    def strict_validation(self) -> bool:
        return self.on_validation_failure == "raise"

    @property
    def inputs_schema(self) -> Any:
        return self._inputs_schema

    @property
    def outputs_schema(self) -> Any:
        return self._outputs_schema

    def inputs(self, schema: Any) -> "Step":
        self._inputs_schema = schema
        return self

    def outputs(self, schema: Any) -> "Step":
        self._outputs_schema = schema
        return self

    async def run(self, inputs: Mapping[str, Any], steps: Optional[Sequence["Step"]] = None) -> StepRecord:
        raw_inputs = dict(inputs)
        logger.info("Running step: %s, with inputs: %s", self.name, raw_inputs)

        handle = self.record_call({"inputs": raw_inputs})

        effective_inputs = self.preprocess(raw_inputs)
        outputs = await self.compute(effective_inputs, steps)
        mapped_outputs = self.map_outputs(outputs)

        self.record_call({"outputs": mapped_outputs}, update_prev=True, handle=handle)

        return self.postprocess(effective_inputs, mapped_outputs)

    @abstractmethod
    async def compute(self, inputs: StepRecord, steps: Optional[Sequence["Step"]] = None) -> Mapping[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def step_metadata(self) -> dict[str, Any]:
        raise NotImplementedError

    def record_call(
        self,
        fields: Mapping[str, Any],
        update_prev: bool = False,
        handle: CallHandle | None = None,
    ) -> CallHandle:
        """
        Record a call to this step.

        Append mode pushes a new record and returns its handle. Update mode
        merges ``fields`` into the record named by ``handle``, or into the most
        recent record when no handle is given, and raises CallHistoryError if
        nothing has been recorded yet.
        """
        if not update_prev:
            return self.calls.append(fields)
        self.calls.update(fields, handle)
        if handle is None:
            return CallHandle(len(self.calls) - 1)
        return handle

    def preprocess(self, inputs: StepRecord) -> StepRecord:
        if self._inputs_schema is not None:
            self._check(self.validate_inputs, inputs)
        logger.debug("Preprocessed inputs: %s at step %s", inputs, self.name)
        return inputs

    def postprocess(self, inputs: StepRecord, outputs: Mapping[str, Any]) -> StepRecord:
        if self._outputs_schema is not None:
            self._check(self.validate_outputs, outputs)
        logger.debug("Postprocessed inputs: %s, outputs: %s at step %s", inputs, outputs, self.name)
        return {**inputs, **outputs}

    def map_outputs(self, outputs: Mapping[str, Any]) -> StepRecord:
        # Two keys renamed to the same target: the later key in iteration order wins.
        if self._output_map is None:
            return dict(outputs)
        mapped: StepRecord = {}
        for key, value in outputs.items():
            target = self._output_map.get(key)
            if target:
                mapped[target] = value
            else:
                mapped[key] = value
        return mapped

    def serialize(self) -> dict[str, Any]:
        call = self.calls.last
        if call is None:
            return {}
        logger.debug("Serializing step: %s, call: %s", self.name, call.snapshot())
        return {"call": call.snapshot(), **self.step_metadata()}

    def validate_inputs(self, inputs: Mapping[str, Any]) -> Any:
        logger.debug("Validating inputs: %s, schema: %s", inputs, self._inputs_schema)
        return self._parse("inputs", self._inputs_schema, inputs)

    def validate_outputs(self, outputs: Mapping[str, Any]) -> Any:
        logger.debug("Validating outputs: %s, schema: %s", outputs, self._outputs_schema)
        return self._parse("outputs", self._outputs_schema, outputs)

    def _parse(self, stage: str, schema: Any, candidate: Mapping[str, Any]) -> Any:
        if schema is None:
            return candidate
        parser = schema_parser(schema)
        try:
            return parser(candidate)
        except Exception as exc:
            raise StepValidationError(self.name, stage, _error_fields(exc), str(exc)) from exc

    def _check(self, validator: Callable[[Mapping[str, Any]], Any], candidate: Mapping[str, Any]) -> None:
        try:
            validator(candidate)
        except StepValidationError as exc:
            if self.strict_validation:
                raise
            logger.warning("Ignoring validation failure: %s", exc)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
