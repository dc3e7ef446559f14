"""Shopping list domain models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedIngredient:
    """One ingredient line split into quantity, unit and name."""

    original: str
    quantity: float | None
    unit: str | None
    normalized_name: str
    display_name: str


@dataclass(frozen=True)
class ShoppingLineItem:
    """A consolidated shopping list row."""

    key: str
    name: str
    normalized_name: str
    unit: str | None
    quantity: float
    occurrences: float
    aisle: str
    sources: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "key": self.key,
            "name": self.name,
            "normalizedName": self.normalized_name,
            "unit": self.unit,
            "quantity": self.quantity,
            "occurrences": self.occurrences,
            "aisle": self.aisle,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class NeedsReviewItem:
    """An ingredient whose quantity could not be parsed."""

    key: str
    name: str
    normalized_name: str
    occurrences: float
    aisle: str
    sources: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "key": self.key,
            "name": self.name,
            "normalizedName": self.normalized_name,
            "occurrences": self.occurrences,
            "aisle": self.aisle,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class ShoppingStats:
    """Counters describing what fed a shopping list."""

    planned_meals: int = 0
    cooking_sessions: int = 0
    recipes_considered: int = 0
    total_ingredient_lines: int = 0
    total_planned_servings: float = 0.0
    total_aggregated_items: int = 0

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "plannedMeals": self.planned_meals,
            "cookingSessions": self.cooking_sessions,
            "recipesConsidered": self.recipes_considered,
            "totalIngredientLines": self.total_ingredient_lines,
            "totalPlannedServings": self.total_planned_servings,
            "totalAggregatedItems": self.total_aggregated_items,
        }


@dataclass(frozen=True)
class ShoppingList:
    """Aggregated totals plus lines needing manual review."""

    totals: tuple[ShoppingLineItem, ...] = ()
    needs_review: tuple[NeedsReviewItem, ...] = ()
    stats: ShoppingStats = field(default_factory=ShoppingStats)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "totals": [item.to_dict() for item in self.totals],
            "needsReview": [item.to_dict() for item in self.needs_review],
            "stats": self.stats.to_dict(),
        }
