"""OpenAI Chat Completions client for planning directives."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_planner.services.directives import (
    ReasoningClient,
    ReasoningResponse,
    ToolCall,
)


@dataclass
class OpenAIReasoningClient(ReasoningClient):
    """Reasoning client backed by OpenAI tool calling."""

    client: AsyncOpenAI
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_completion_tokens: int = 350

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_completion_tokens: int = 350,
    ) -> "OpenAIReasoningClient":
        """Create an OpenAI reasoning client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            model=model,
            temperature=temperature,
            max_completion_tokens=max_completion_tokens,
        )

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        tools: list[dict[str, object]],
    ) -> ReasoningResponse:
        """Request the next assistant turn, allowing tool calls."""
        completion = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_completion_tokens=self.max_completion_tokens,
            response_format={"type": "json_object"},
            messages=messages,
            tools=tools,
            tool_choice="auto",
        )
        if not completion.choices:
            raise RuntimeError("OpenAI returned no choices")
        message = completion.choices[0].message
        calls = tuple(
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=call.function.arguments or "{}",
            )
            for call in message.tool_calls or []
            if getattr(call, "function", None) is not None
        )
        return ReasoningResponse(content=message.content or "", tool_calls=calls)
