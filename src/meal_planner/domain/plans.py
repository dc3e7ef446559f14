"""Meal plan, cooking session and run result models."""

from dataclasses import dataclass, field

from meal_planner.domain.profile import pick_choice, positive_number
from meal_planner.domain.shopping import ShoppingList

SLOT_SOURCES: tuple[str, ...] = ("fresh", "leftovers", "batch-prep", "frozen")


@dataclass(frozen=True)
class MealSlot:
    """One meal type on one day with its assigned recipe."""

    meal_type: str
    recipe_id: str
    source: str = "fresh"
    planned_servings: float = 1
    exclude_from_shopping: bool = False
    notes: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "MealSlot":
        """Build a slot from a stored payload."""
        return cls(
            meal_type=str(payload.get("type") or ""),
            recipe_id=str(payload.get("recipe") or ""),
            source=pick_choice(payload.get("source"), SLOT_SOURCES, "fresh"),
            planned_servings=positive_number(payload.get("plannedServings"), 1),
            exclude_from_shopping=payload.get("excludeFromShopping") is True,
            notes=str(payload.get("notes") or ""),
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "type": self.meal_type,
            "recipe": self.recipe_id,
            "notes": self.notes,
            "source": self.source,
            "plannedServings": self.planned_servings,
            "excludeFromShopping": self.exclude_from_shopping,
        }


@dataclass(frozen=True)
class CookingSession:
    """A batch-prep event that can cover several later meal slots."""

    recipe_id: str
    servings: float
    time_slot: str = "afternoon"
    purpose: str = "meal_prep"
    notes: str = ""
    exclude_from_shopping: bool = False

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "CookingSession":
        """Build a session from a stored payload."""
        servings = payload.get("plannedServings", payload.get("servings"))
        return cls(
            recipe_id=str(payload.get("recipe") or ""),
            servings=positive_number(servings, 1),
            time_slot=str(payload.get("timeSlot") or "afternoon"),
            purpose=str(payload.get("purpose") or "meal_prep"),
            notes=str(payload.get("notes") or ""),
            exclude_from_shopping=payload.get("excludeFromShopping") is True,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "recipe": self.recipe_id,
            "notes": self.notes,
            "timeSlot": self.time_slot,
            "servings": self.servings,
            "plannedServings": self.servings,
            "excludeFromShopping": self.exclude_from_shopping,
            "purpose": self.purpose,
        }


@dataclass(frozen=True)
class MealPlanDay:
    """All meal slots and cooking sessions for a single date."""

    date: str
    meals: tuple[MealSlot, ...] = ()
    cooking_sessions: tuple[CookingSession, ...] = ()

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "MealPlanDay":
        """Build a day from a stored payload."""
        meals = payload.get("meals")
        sessions = payload.get("cookingSessions")
        return cls(
            date=str(payload.get("date") or ""),
            meals=tuple(
                MealSlot.from_dict(meal)
                for meal in (meals if isinstance(meals, list) else [])
                if isinstance(meal, dict)
            ),
            cooking_sessions=tuple(
                CookingSession.from_dict(session)
                for session in (sessions if isinstance(sessions, list) else [])
                if isinstance(session, dict)
            ),
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "date": self.date,
            "meals": [meal.to_dict() for meal in self.meals],
            "cookingSessions": [
                session.to_dict() for session in self.cooking_sessions
            ],
        }


@dataclass(frozen=True)
class CookingScheduleDay:
    """Coarse daily cooking tasks."""

    date: str
    time_slot: str
    tasks: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "date": self.date,
            "timeSlot": self.time_slot,
            "tasks": list(self.tasks),
        }


@dataclass(frozen=True)
class ToolTraceEntry:
    """Audit record of one internal step and a small result summary."""

    tool: str
    details: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {"tool": self.tool, **self.details}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of hard-constraint validation."""

    violations: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        """True when no hard constraint is violated."""
        return not self.violations

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "hardConstraintViolations": list(self.violations),
            "hardConstraintPass": self.passed,
        }


@dataclass(frozen=True)
class RunSummary:
    """Human-facing summary of a planning run."""

    why_this_plan: str
    unmet_constraints: tuple[str, ...]
    notes: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "whyThisPlan": self.why_this_plan,
            "unmetConstraints": list(self.unmet_constraints),
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class RunDraft:
    """Everything a planning run produced."""

    meal_plan_days: tuple[MealPlanDay, ...]
    shopping_list: ShoppingList
    cooking_schedule: tuple[CookingScheduleDay, ...]
    created_recipes: tuple[dict[str, str], ...]
    recipe_catalog: tuple[dict[str, object], ...]
    validation: ValidationResult
    tool_trace: tuple[ToolTraceEntry, ...]

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "mealPlanDays": [day.to_dict() for day in self.meal_plan_days],
            "shoppingList": self.shopping_list.to_dict(),
            "cookingSchedule": [day.to_dict() for day in self.cooking_schedule],
            "createdRecipes": [dict(recipe) for recipe in self.created_recipes],
            "recipeCatalog": [dict(recipe) for recipe in self.recipe_catalog],
            "validation": self.validation.to_dict(),
            "toolTrace": [entry.to_dict() for entry in self.tool_trace],
        }


@dataclass(frozen=True)
class PlanningRunResult:
    """Draft plus summary returned by one planning pass."""

    output_draft: RunDraft
    summary: RunSummary

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "outputDraft": self.output_draft.to_dict(),
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class AgentRunRecord:
    """A persisted planning run."""

    id: str
    user_id: str
    status: str
    date_start: str
    date_end: str
    output_draft: dict[str, object] | None = None
    summary: dict[str, object] | None = None
    error_message: str = ""
