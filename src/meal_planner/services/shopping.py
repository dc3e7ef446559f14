"""Shopping list aggregation across scheduled recipes."""

from collections.abc import Iterable, Mapping
import math
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Protocol

from meal_planner.domain.plans import MealPlanDay
from meal_planner.domain.profile import positive_number
from meal_planner.domain.recipes import RecipeCandidate
from meal_planner.domain.shopping import (
    NeedsReviewItem,
    ParsedIngredient,
    ShoppingLineItem,
    ShoppingList,
    ShoppingStats,
)
from meal_planner.services.aisles import DEFAULT_AISLE, classify_aisle
from meal_planner.services.ingredients import parse_ingredient_line
from meal_planner.services.meal_plans import MealPlanRepository
from meal_planner.services.recipes import RecipeRepository

UNIT_FAMILIES = MappingProxyType(
    {
        "tsp": "volume",
        "tbsp": "volume",
        "cup": "volume",
        "ml": "volume",
        "l": "volume",
        "g": "weight",
        "kg": "weight",
        "oz": "weight",
        "lb": "weight",
    }
)

# Volume converts to ml, weight converts to g.
UNIT_TO_BASE = MappingProxyType(
    {
        "tsp": 4.92892,
        "tbsp": 14.7868,
        "cup": 236.588,
        "ml": 1.0,
        "l": 1000.0,
        "g": 1.0,
        "kg": 1000.0,
        "oz": 28.3495,
        "lb": 453.592,
    }
)

MAX_SOURCES = 5
# Floats this large carry no hundredths digit.
MAX_ROUNDED_QUANTITY = 1e15


class AisleOverrideRepository(Protocol):
    """Persistence interface for per-user aisle overrides."""

    def get_overrides(self, user_id: str) -> dict[str, str]:
        """Return a mapping of normalized ingredient name to aisle."""

    def upsert_override(self, user_id: str, normalized_name: str, aisle: str) -> None:
        """Create or replace the aisle override for an ingredient."""


def unit_family(unit: str | None) -> str | None:
    """Return the unit family for a unit, if it belongs to one."""
    if not unit:
        return None
    return UNIT_FAMILIES.get(unit)


def to_base_quantity(quantity: float, unit: str) -> float:
    """Convert a quantity into its family's base unit."""
    return quantity * UNIT_TO_BASE[unit]


def from_base_quantity(quantity: float, unit: str) -> float:
    """Convert a base-unit quantity into the given unit."""
    return quantity / UNIT_TO_BASE[unit]


def pick_display_unit(family: str, base_quantity: float) -> str:
    """Choose a human-scaled unit for an accumulated base quantity."""
    if family == "weight":
        return "kg" if base_quantity >= UNIT_TO_BASE["kg"] else "g"
    if base_quantity >= UNIT_TO_BASE["l"]:
        return "l"
    if base_quantity >= UNIT_TO_BASE["cup"]:
        return "cup"
    if base_quantity >= UNIT_TO_BASE["tbsp"]:
        return "tbsp"
    return "tsp"


def serving_multiplier(planned_servings: object, recipe_servings: object) -> float:
    """Scale factor for cooking a recipe at the planned serving count."""
    return positive_number(planned_servings, 1.0) / positive_number(
        recipe_servings, 1.0
    )


def round_quantity(value: float) -> float:
    """Round half-up to two decimals; non-finite and huge values pass through."""
    if not math.isfinite(value) or abs(value) >= MAX_ROUNDED_QUANTITY:
        return value
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


@dataclass
class _TotalEntry:
    name: str
    normalized_name: str
    unit: str | None
    family: str | None
    aisle: str
    base_quantity: float = 0.0
    quantity: float = 0.0
    occurrences: float = 0.0
    sources: dict[str, None] = field(default_factory=dict)


@dataclass
class _ReviewEntry:
    name: str
    normalized_name: str
    aisle: str
    occurrences: float = 0.0
    sources: dict[str, None] = field(default_factory=dict)


@dataclass
class ShoppingAggregator:
    """Reducer that merges parsed lines into unit-normalized totals."""

    _totals: dict[str, _TotalEntry] = field(default_factory=dict)
    _review: dict[str, _ReviewEntry] = field(default_factory=dict)

    def add(self, parsed: ParsedIngredient, multiplier: float, source: str) -> bool:
        """Accumulate one parsed line; returns False when it was skipped."""
        if multiplier <= 0:
            return False
        if parsed.quantity is None:
            self._add_review(parsed, multiplier, source)
        else:
            self._add_total(parsed, multiplier, source)
        return True

    def totals(self) -> list[ShoppingLineItem]:
        """Return consolidated rows sorted by display name."""
        items: list[ShoppingLineItem] = []
        for entry in self._totals.values():
            unit = entry.unit
            quantity = entry.quantity
            if entry.family:
                unit = pick_display_unit(entry.family, entry.base_quantity)
                quantity = from_base_quantity(entry.base_quantity, unit)
            items.append(
                ShoppingLineItem(
                    key=f"{entry.normalized_name}::{unit or 'unitless'}",
                    name=entry.name,
                    normalized_name=entry.normalized_name,
                    unit=unit,
                    quantity=round_quantity(quantity),
                    occurrences=round_quantity(entry.occurrences),
                    aisle=entry.aisle,
                    sources=tuple(entry.sources),
                )
            )
        return sorted(items, key=_display_order)

    def needs_review(self) -> list[NeedsReviewItem]:
        """Return unparseable lines sorted by display name."""
        items = [
            NeedsReviewItem(
                key=key,
                name=entry.name,
                normalized_name=entry.normalized_name,
                occurrences=round_quantity(entry.occurrences),
                aisle=entry.aisle,
                sources=tuple(entry.sources),
            )
            for key, entry in self._review.items()
        ]
        return sorted(items, key=_display_order)

    def _add_total(
        self, parsed: ParsedIngredient, multiplier: float, source: str
    ) -> None:
        family = unit_family(parsed.unit)
        if family:
            key = f"{parsed.normalized_name}::family:{family}"
        else:
            key = f"{parsed.normalized_name}::{parsed.unit or 'unitless'}"
        entry = self._totals.get(key)
        if entry is None:
            entry = _TotalEntry(
                name=parsed.display_name,
                normalized_name=parsed.normalized_name,
                unit=parsed.unit,
                family=family,
                aisle=classify_aisle(parsed.normalized_name),
            )
            self._totals[key] = entry

        scaled = (parsed.quantity or 0.0) * multiplier
        if family and parsed.unit:
            entry.base_quantity += to_base_quantity(scaled, parsed.unit)
        else:
            entry.quantity += scaled
        entry.occurrences += multiplier
        _add_source(entry.sources, source)

    def _add_review(
        self, parsed: ParsedIngredient, multiplier: float, source: str
    ) -> None:
        entry = self._review.get(parsed.normalized_name)
        if entry is None:
            entry = _ReviewEntry(
                name=parsed.display_name,
                normalized_name=parsed.normalized_name,
                aisle=classify_aisle(parsed.normalized_name),
            )
            self._review[parsed.normalized_name] = entry
        entry.occurrences += multiplier
        _add_source(entry.sources, source)


def build_shopping_list(
    days: Iterable[MealPlanDay],
    catalog: Mapping[str, RecipeCandidate],
    *,
    include_meals: bool = True,
    include_cooking_sessions: bool = True,
) -> ShoppingList:
    """Reduce every shopping-relevant slot and session into one list."""
    aggregator = ShoppingAggregator()
    planned_meals = 0
    cooking_sessions = 0
    ingredient_lines = 0
    planned_servings = 0.0

    def process(
        date: str, recipe: RecipeCandidate | None, servings: float, label: str
    ) -> None:
        nonlocal ingredient_lines, planned_servings
        recipe_servings = recipe.recipe_servings if recipe else 1
        multiplier = serving_multiplier(servings, recipe_servings)
        planned_servings += positive_number(servings, 1.0)
        title = recipe.title if recipe else label
        source = f"{date} • {title} ({multiplier:.2f}x)"
        if recipe is None:
            return
        for line in recipe.ingredients:
            parsed = parse_ingredient_line(line)
            if parsed is None:
                continue
            ingredient_lines += 1
            aggregator.add(parsed, multiplier, source)

    for day in days:
        if include_meals:
            for meal in day.meals:
                if meal.exclude_from_shopping:
                    continue
                planned_meals += 1
                process(
                    day.date, catalog.get(meal.recipe_id), meal.planned_servings, "Meal"
                )
        if include_cooking_sessions:
            for session in day.cooking_sessions:
                if session.exclude_from_shopping:
                    continue
                cooking_sessions += 1
                process(
                    day.date,
                    catalog.get(session.recipe_id),
                    session.servings,
                    "Cooking Session",
                )

    totals = aggregator.totals()
    return ShoppingList(
        totals=tuple(totals),
        needs_review=tuple(aggregator.needs_review()),
        stats=ShoppingStats(
            planned_meals=planned_meals,
            cooking_sessions=cooking_sessions,
            recipes_considered=planned_meals + cooking_sessions,
            total_ingredient_lines=ingredient_lines,
            total_planned_servings=round_quantity(planned_servings),
            total_aggregated_items=len(totals),
        ),
    )


def apply_aisle_overrides(
    shopping_list: ShoppingList, overrides: Mapping[str, str]
) -> ShoppingList:
    """Replace rule-based aisles with the user's overrides where present."""
    if not overrides:
        return shopping_list
    return replace(
        shopping_list,
        totals=tuple(
            replace(item, aisle=overrides.get(item.normalized_name) or item.aisle)
            for item in shopping_list.totals
        ),
        needs_review=tuple(
            replace(item, aisle=overrides.get(item.normalized_name) or item.aisle)
            for item in shopping_list.needs_review
        ),
    )


def checklist_signature(
    start: str, end: str, *, include_meals: bool, include_cooking_sessions: bool
) -> str:
    """Key identifying one shape of shopping list for checklist storage."""
    return "|".join(
        [
            start,
            end,
            "meals1" if include_meals else "meals0",
            "sessions1" if include_cooking_sessions else "sessions0",
        ]
    )


@dataclass
class ShoppingService:
    """Builds stored meal plans into a user's shopping list."""

    plan_repository: MealPlanRepository
    recipe_repository: RecipeRepository
    override_repository: AisleOverrideRepository

    def build_for_user(
        self,
        user_id: str,
        start: str,
        end: str,
        *,
        include_meals: bool = True,
        include_cooking_sessions: bool = True,
    ) -> tuple[str, ShoppingList]:
        """Return the checklist signature and override-aware shopping list."""
        days = self.plan_repository.list_days(user_id, start, end)
        catalog = {
            recipe.id: recipe
            for recipe in self.recipe_repository.list_candidates(user_id)
        }
        shopping_list = build_shopping_list(
            days,
            catalog,
            include_meals=include_meals,
            include_cooking_sessions=include_cooking_sessions,
        )
        overrides = self.override_repository.get_overrides(user_id)
        signature = checklist_signature(
            start,
            end,
            include_meals=include_meals,
            include_cooking_sessions=include_cooking_sessions,
        )
        return signature, apply_aisle_overrides(shopping_list, overrides)

    def set_aisle_override(
        self, user_id: str, normalized_name: str, aisle: str | None
    ) -> tuple[str, str]:
        """Store an aisle override, normalizing the ingredient name."""
        clean_name = str(normalized_name or "").strip().lower()
        clean_aisle = str(aisle or "").strip() or DEFAULT_AISLE
        if not clean_name:
            raise ValueError("normalized_name is required")
        self.override_repository.upsert_override(user_id, clean_name, clean_aisle)
        return clean_name, clean_aisle


def _add_source(sources: dict[str, None], label: str) -> None:
    if label in sources or len(sources) >= MAX_SOURCES:
        return
    sources[label] = None


def _display_order(item: ShoppingLineItem | NeedsReviewItem) -> tuple[str, str]:
    return (item.name.casefold(), item.name)
