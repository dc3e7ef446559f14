"""Tests for HTTP-based adapters."""

import asyncio
from types import SimpleNamespace

import pytest

from meal_planner.adapters.openai_reasoning_client import OpenAIReasoningClient
from meal_planner.services.directives import CREATE_RECIPE_TOOL


class _FakeCompletions:
    def __init__(self, message: SimpleNamespace | None) -> None:
        self.message = message
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        choices = [SimpleNamespace(message=self.message)] if self.message else []
        return SimpleNamespace(choices=choices)


class _FakeOpenAI:
    def __init__(self, message: SimpleNamespace | None) -> None:
        self.chat = SimpleNamespace(completions=_FakeCompletions(message))


def _tool_call(call_id: str, name: str, arguments: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def test_openai_reasoning_client_returns_content() -> None:
    fake = _FakeOpenAI(SimpleNamespace(content='{"mealTypes": []}', tool_calls=None))
    client = OpenAIReasoningClient(client=fake, model="gpt-test")

    response = asyncio.run(
        client.complete(
            messages=[{"role": "user", "content": "plan"}],
            tools=[CREATE_RECIPE_TOOL],
        )
    )

    assert response.content == '{"mealTypes": []}'
    assert response.tool_calls == ()
    payload = fake.chat.completions.last_payload
    assert payload["model"] == "gpt-test"
    assert payload["tool_choice"] == "auto"
    assert payload["tools"] == [CREATE_RECIPE_TOOL]
    assert payload["response_format"] == {"type": "json_object"}


def test_openai_reasoning_client_maps_tool_calls() -> None:
    fake = _FakeOpenAI(
        SimpleNamespace(
            content=None,
            tool_calls=[
                _tool_call("call-1", "create_recipe", '{"title": "Soup"}'),
                _tool_call("call-2", "create_recipe", None),
            ],
        )
    )
    client = OpenAIReasoningClient(client=fake)

    response = asyncio.run(client.complete(messages=[], tools=[]))

    assert response.content == ""
    assert [(call.id, call.arguments) for call in response.tool_calls] == [
        ("call-1", '{"title": "Soup"}'),
        ("call-2", "{}"),
    ]


def test_openai_reasoning_client_rejects_empty_choices() -> None:
    client = OpenAIReasoningClient(client=_FakeOpenAI(None))

    with pytest.raises(RuntimeError, match="no choices"):
        asyncio.run(client.complete(messages=[], tools=[]))
