"""Step that asks a language model for its outputs."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ValidationError
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from promptable.json_utils import extract_first_json_object
from promptable.models.model_spec import ModelSpec
from promptable.prompting import build_step_instructions, make_user_prompt
from promptable.step import Step, StepRecord, ValidationMode

OPENAI_BASE_URL = "https://api.openai.com/v1"
SUPPORTED_PROVIDERS = ("openai-compatible",)


class PromptStep(Step):
    """
    Runs one pydantic-ai agent call per invocation.

    Text steps store the reply under ``output_key``. Structured steps parse the
    reply into ``output_type`` and return its fields.
    """

    def __init__(
        self,
        name: str,
        prompt: str,
        model: Model | str,
        output_map: Optional[Mapping[str, str]] = None,
        *,
        instructions: str = "",
        system_prompt: str = "",
        output_key: str = "text",
        output_type: Type[BaseModel] | None = None,
        model_settings: ModelSettings | None = None,
        on_validation_failure: ValidationMode = "ignore",
        strict_validation: bool = False,
    ) -> None:
        super().__init__(
            name,
            output_map,
            on_validation_failure=on_validation_failure,
            strict_validation=strict_validation,
        )
        self.prompt: str = prompt
        self.model: Model | str = model
        self.instructions: str = instructions
        self.system_prompt: str = system_prompt
        self.output_key: str = output_key
        self.output_type: Type[BaseModel] | None = output_type
        self.model_settings: ModelSettings | None = model_settings

    @property
    def kind(self) -> str:
        return "text" if self.output_type is None else "structured"

    def _system_prompt_arg(self) -> str | list[str]:
        if self.system_prompt:
            return self.system_prompt
        return []

    def _settings_for_run(self) -> ModelSettings | None:
        if self.output_type is None:
            return self.model_settings
        return build_structured_model_settings(self.model, self.model_settings, self.output_type)

    async def compute(self, inputs: StepRecord, steps: Optional[Sequence[Step]] = None) -> Mapping[str, Any]:
        agent = Agent(
            self.model,
            instructions=build_step_instructions(self.instructions, self.prompt),
            system_prompt=self._system_prompt_arg(),
            output_type=self.output_type or str,
            model_settings=self._settings_for_run(),
        )
        result = await agent.run(make_user_prompt(inputs))
        if self.output_type is None:
            return {self.output_key: result.output}
        return self._parse_structured(result.output).model_dump()

    def _parse_structured(self, raw_output: Any) -> BaseModel:
        if self.output_type is None:
            raise ValueError(f"Step {self.name} has no output type.")
        if isinstance(raw_output, BaseModel):
            return raw_output
        if isinstance(raw_output, dict):
            return self.output_type.model_validate(raw_output)
        try:
            return self.output_type.model_validate_json(raw_output)
        except ValidationError:
            return self.output_type.model_validate(extract_first_json_object(raw_output))

    def step_metadata(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "model": model_label(self.model),
            "output_schema": self.output_type.__name__ if self.output_type is not None else None,
        }


def model_label(model: Model | str) -> str:
    if isinstance(model, str):
        return model
    return getattr(model, "model_name", type(model).__name__)


def build_model(model_spec: ModelSpec) -> OpenAIChatModel:
    if model_spec.provider not in SUPPORTED_PROVIDERS:
        raise ValueError(f"Unsupported model provider: {model_spec.provider!r}")
    api_key = os.environ.get(model_spec.api_key_env, "noop")
    provider = OpenAIProvider(base_url=model_spec.base_url, api_key=api_key)
    return OpenAIChatModel(model_spec.model_name, provider=provider)


def build_model_settings(model_spec: ModelSpec) -> ModelSettings:
    return {
        "temperature": model_spec.temperature,
        "max_tokens": model_spec.max_tokens,
    }


def build_structured_model_settings(
    model: Model | str,
    base_settings: ModelSettings | None,
    schema_cls: Type[BaseModel],
) -> ModelSettings | None:
    if not isinstance(model, OpenAIChatModel):
        return base_settings
    settings: ModelSettings = {**(base_settings or {})}
    extra_body_obj = settings.get("extra_body")
    extra_body: dict[str, Any] = dict(extra_body_obj) if isinstance(extra_body_obj, dict) else {}
    base_url = str(model.base_url or "").rstrip("/")
    if base_url == OPENAI_BASE_URL:
        extra_body.setdefault(
            "response_format",
            {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_cls.__name__,
                    "schema": schema_cls.model_json_schema(),
                    "strict": True,
                },
            },
        )
    else:
        # Ollama's OpenAI-compatible API uses "format": "json" to force JSON output.
        extra_body.setdefault("format", "json")
    settings["extra_body"] = extra_body
    return settings
