"""Planning directive resolution via a bounded tool-calling loop."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from meal_planner.domain.conversation import ConversationMessage
from meal_planner.domain.directives import CreateRecipeArguments, PlanningDirectives
from meal_planner.domain.plans import ToolTraceEntry
from meal_planner.domain.profile import PlanningProfile
from meal_planner.domain.recipes import MEAL_TYPES, RecipeCandidate
from meal_planner.services.recipes import RecipeRepository

_logger = logging.getLogger(__name__)

DEFAULT_MEAL_TYPES: tuple[str, ...] = ("lunch", "dinner")

SYSTEM_PROMPT = " ".join(
    [
        "You are a meal planning agent.",
        "Use tool calls only when you must create a new recipe.",
        "When done, return ONLY JSON with schema:",
        '{"mealTypes":["breakfast"|"lunch"|"dinner"|"snack"],'
        '"selectedRecipeIds":[string],'
        '"strictness":"flexible"|"balanced"|"strict",'
        '"notes":[string],"whyThisPlan":string}',
        "Keep notes concise.",
    ]
)

CREATE_RECIPE_TOOL: dict[str, object] = {
    "type": "function",
    "function": {
        "name": "create_recipe",
        "description": (
            "Create a new recipe when existing recipes cannot satisfy constraints."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "description": {"type": "string"},
                "category": {"type": "string", "enum": list(MEAL_TYPES)},
                "prepTime": {"type": "number"},
                "recipeServings": {"type": "number"},
                "ingredients": {"type": "array", "items": {"type": "string"}},
                "instructions": {"type": "array", "items": {"type": "string"}},
                "macros": {
                    "type": "object",
                    "properties": {
                        "calories": {"type": "number"},
                        "protein": {"type": "number"},
                        "carbs": {"type": "number"},
                        "fat": {"type": "number"},
                    },
                    "required": ["calories", "protein", "carbs", "fat"],
                    "additionalProperties": False,
                },
            },
            "required": [
                "title",
                "description",
                "category",
                "prepTime",
                "recipeServings",
                "ingredients",
                "instructions",
                "macros",
            ],
            "additionalProperties": False,
        },
    },
}


class ToolName(Enum):
    """Tools the reasoning service may call."""

    CREATE_RECIPE = "create_recipe"


class ResolverState(Enum):
    """States of the directive resolution loop."""

    AWAITING_RESPONSE = "awaiting_response"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the reasoning service."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class ReasoningResponse:
    """One assistant turn: either tool calls or terminal content."""

    content: str
    tool_calls: tuple[ToolCall, ...] = ()


class ReasoningClient(Protocol):
    """Interface for the external reasoning service."""

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        tools: list[dict[str, object]],
    ) -> ReasoningResponse:
        """Return the next assistant turn for the conversation."""


class MessageRepository(Protocol):
    """Persistence interface for run conversation messages."""

    def list_messages(self, user_id: str, run_id: str) -> list[ConversationMessage]:
        """Return a run's messages ordered by creation time."""

    def add_message(self, user_id: str, run_id: str, role: str, content: str) -> None:
        """Append a message to a run's conversation."""


@dataclass
class DirectiveRequest:
    """Inputs and mutable outputs of one resolution pass.

    ``candidates``, ``created_recipes`` and ``tool_trace`` are appended to as
    tools run, so recipes created before a later failure stay visible.
    """

    user_id: str
    profile: PlanningProfile
    date_start: str
    date_end: str
    messages: Sequence[ConversationMessage]
    candidates: list[RecipeCandidate]
    revision_instruction: str | None = None
    created_recipes: list[RecipeCandidate] = field(default_factory=list)
    tool_trace: list[ToolTraceEntry] = field(default_factory=list)


@dataclass
class DirectiveResolver:
    """Asks the reasoning service for planning directives."""

    client: ReasoningClient | None
    recipe_repository: RecipeRepository
    max_round_trips: int = 3
    candidate_limit: int = 120
    conversation_window: int = 12

    async def resolve(self, request: DirectiveRequest) -> PlanningDirectives | None:
        """Run the bounded tool loop; None means fall back to heuristics."""
        if self.client is None:
            return None

        working = self.build_messages(request)
        tools = [CREATE_RECIPE_TOOL]
        state = ResolverState.AWAITING_RESPONSE
        pending: tuple[ToolCall, ...] = ()
        directives: PlanningDirectives | None = None
        round_trips = 0

        while state in (ResolverState.AWAITING_RESPONSE, ResolverState.EXECUTING_TOOLS):
            if state is ResolverState.EXECUTING_TOOLS:
                for call in pending:
                    output = self._execute_tool(request, call)
                    working.append(
                        {
                            "role": "tool",
                            "tool_call_id": call.id,
                            "content": json.dumps(output),
                        }
                    )
                pending = ()
                state = ResolverState.AWAITING_RESPONSE
                continue

            if round_trips >= self.max_round_trips:
                _logger.warning(
                    "Directive resolution exhausted %s round trips", round_trips
                )
                state = ResolverState.FAILED
                continue
            round_trips += 1
            try:
                response = await self.client.complete(messages=working, tools=tools)
            except Exception as exc:
                _logger.warning(
                    "Reasoning call failed (round trip %s/%s): %s",
                    round_trips,
                    self.max_round_trips,
                    exc,
                )
                state = ResolverState.FAILED
                continue

            if response.tool_calls:
                working.append(_assistant_tool_message(response))
                pending = response.tool_calls
                state = ResolverState.EXECUTING_TOOLS
                continue

            directives = parse_directive_json(response.content)
            if directives is None:
                _logger.warning("Reasoning service returned unparseable directives")
                state = ResolverState.FAILED
            else:
                state = ResolverState.DONE

        return directives if state is ResolverState.DONE else None

    def build_messages(self, request: DirectiveRequest) -> list[dict[str, object]]:
        """Build the system and user messages for the first round trip."""
        recent = request.messages[-self.conversation_window :]
        conversation = "\n".join(f"{m.role}: {m.content}" for m in recent)
        listing = [
            recipe.to_compact_dict()
            for recipe in request.candidates[: self.candidate_limit]
        ]
        sections = [
            f"Date range: {request.date_start} to {request.date_end}",
            f"Profile: {json.dumps(request.profile.to_prompt_dict())}",
            f"Candidate recipes (use these first): {json.dumps(listing)}",
            (
                f"Revision request: {request.revision_instruction}"
                if request.revision_instruction
                else ""
            ),
            f"Recent conversation:\n{conversation}",
        ]
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "\n\n".join(s for s in sections if s)},
        ]

    def _execute_tool(
        self, request: DirectiveRequest, call: ToolCall
    ) -> dict[str, object]:
        try:
            tool = ToolName(call.name)
        except ValueError:
            request.tool_trace.append(
                ToolTraceEntry("function.unknown", {"name": call.name or "unknown"})
            )
            return {"error": f"Unsupported tool: {call.name}"}

        if tool is ToolName.CREATE_RECIPE:
            return self._create_recipe(request, call)
        return {"error": f"Unsupported tool: {call.name}"}

    def _create_recipe(
        self, request: DirectiveRequest, call: ToolCall
    ) -> dict[str, object]:
        try:
            raw = json.loads(call.arguments or "{}")
            if not isinstance(raw, dict):
                raise ValueError("create_recipe arguments must be an object")
            fields = CreateRecipeArguments.model_validate(raw).to_fields()
            created = self.recipe_repository.create_recipe(request.user_id, fields)
        except Exception as exc:
            _logger.warning("create_recipe tool call failed: %s", exc)
            request.tool_trace.append(
                ToolTraceEntry("function.create_recipe", {"error": True})
            )
            return {"error": "Failed to create recipe"}

        request.candidates.append(created)
        request.created_recipes.append(created)
        request.tool_trace.append(
            ToolTraceEntry(
                "function.create_recipe",
                {"recipeId": created.id, "title": created.title},
            )
        )
        return {
            "createdRecipe": {
                "id": created.id,
                "title": created.title,
                "category": created.category,
            }
        }


def parse_directive_json(raw: str | None) -> PlanningDirectives | None:
    """Extract and validate the outermost JSON object in a response."""
    text = raw or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    return PlanningDirectives.model_validate(payload)


def infer_meal_types_from_text(text: str) -> list[str]:
    """Keyword heuristic used when no directives are available."""
    lowered = text.lower()
    meal_types = [meal_type for meal_type in MEAL_TYPES if meal_type in lowered]
    return meal_types or list(DEFAULT_MEAL_TYPES)


def _assistant_tool_message(response: ReasoningResponse) -> dict[str, object]:
    return {
        "role": "assistant",
        "content": response.content or "",
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in response.tool_calls
        ],
    }
