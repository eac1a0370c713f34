import json
from typing import Any

import httpx
import pytest
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from promptable.chain import Chain
from promptable.steps.function_step import FunctionStep
from promptable.steps.prompt_step import PromptStep


class HttpxRequestRecorder:
    def __init__(self, response_json: dict[str, Any]) -> None:
        self.response_json = response_json
        self.requests: list[httpx.Request] = []
        self.last_json: dict[str, Any] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.last_json = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json=self.response_json)


def _chat_completion_response(model_name: str, content: str) -> dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 123,
        "model": model_name,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }


def _messages_by_role(messages: list[dict[str, Any]], role: str) -> list[dict[str, Any]]:
    return [message for message in messages if message.get("role") == role]


@pytest.mark.anyio
async def test_prompt_step_posts_inputs_and_records_reply() -> None:
    recorder = HttpxRequestRecorder(_chat_completion_response("gpt-5", "Hello, Ada"))
    transport = httpx.MockTransport(recorder)

    async with httpx.AsyncClient(transport=transport, base_url="https://example.test/v1") as client:
        provider = OpenAIProvider(base_url="https://example.test/v1", api_key="test", http_client=client)
        model = OpenAIChatModel("gpt-5", provider=provider)
        step = PromptStep("greet", "Greet the user by name.", model, {"text": "greeting"})

        result = await step.run({"name": "Ada"})

    assert result == {"name": "Ada", "greeting": "Hello, Ada"}
    assert len(recorder.requests) == 1
    assert recorder.last_json is not None
    assert recorder.last_json["model"] == "gpt-5"
    assert recorder.last_json.get("tools") is None
    user_messages = _messages_by_role(recorder.last_json["messages"], "user")
    assert user_messages[-1]["content"] == "## Step Inputs (YAML)\nname: Ada\n"
    assert step.serialize() == {
        "call": {"inputs": {"name": "Ada"}, "outputs": {"greeting": "Hello, Ada"}},
        "kind": "text",
        "model": "gpt-5",
        "output_schema": None,
    }


@pytest.mark.anyio
async def test_chain_threads_function_output_into_prompt() -> None:
    recorder = HttpxRequestRecorder(_chat_completion_response("gpt-5", "A short title"))
    transport = httpx.MockTransport(recorder)

    async with httpx.AsyncClient(transport=transport, base_url="https://example.test/v1") as client:
        provider = OpenAIProvider(base_url="https://example.test/v1", api_key="test", http_client=client)
        model = OpenAIChatModel("gpt-5", provider=provider)
        chain = Chain(
            "titles",
            [
                FunctionStep("clean", lambda inputs: {"topic": str(inputs["raw"]).strip()}),
                PromptStep("title", "Write a title.", model, {"text": "title"}),
            ],
        )

        result = await chain.run({"raw": "  steps  "})

    assert result == {"raw": "  steps  ", "topic": "steps", "title": "A short title"}
    assert recorder.last_json is not None
    user_messages = _messages_by_role(recorder.last_json["messages"], "user")
    assert "topic: steps" in user_messages[-1]["content"]
