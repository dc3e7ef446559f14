"""Hard-constraint validation for planning drafts."""

import re
from collections.abc import Iterable

from meal_planner.domain.plans import ValidationResult
from meal_planner.domain.profile import PlanningProfile
from meal_planner.domain.recipes import RecipeCandidate

_FORBIDDEN_PATTERNS = (
    re.compile(r"^no\s+(.+)$"),
    re.compile(r"^avoid\s+(.+)$"),
    re.compile(r"^exclude\s+(.+)$"),
    re.compile(r"^without\s+(.+)$"),
)
_MAX_COOK_TIME = re.compile(r"max(?:imum)?\s*(\d+)\s*min")


def parse_forbidden_keywords(hard_constraints: Iterable[str]) -> list[str]:
    """Extract forbidden ingredient keywords from constraint phrases."""
    keywords: list[str] = []
    for constraint in hard_constraints:
        text = _normalize(constraint)
        if not text:
            continue
        for pattern in _FORBIDDEN_PATTERNS:
            match = pattern.match(text)
            if match and match.group(1).strip():
                keyword = match.group(1).strip()
                if keyword not in keywords:
                    keywords.append(keyword)
    return keywords


def parse_max_cook_time(hard_constraints: Iterable[str]) -> int | None:
    """Return the first cook-time ceiling phrased as `max N min`."""
    for constraint in hard_constraints:
        match = _MAX_COOK_TIME.search(_normalize(constraint))
        if match:
            return int(match.group(1))
    return None


def validate_agent_draft(
    profile: PlanningProfile, recipe_catalog: Iterable[RecipeCandidate]
) -> ValidationResult:
    """Report every hard-constraint violation in the recipe catalog."""
    recipes = list(recipe_catalog)
    violations: list[str] = []

    if profile.disclaimer_accepted_at is None:
        violations.append("Medical disclaimer not accepted.")

    forbidden = parse_forbidden_keywords(profile.hard_constraints)
    if forbidden:
        for recipe in recipes:
            haystack = "\n".join(_normalize(line) for line in recipe.ingredients)
            for keyword in forbidden:
                if keyword in haystack:
                    violations.append(
                        f'Hard constraint violation: "{keyword}" found in recipe '
                        f'"{recipe.title}".'
                    )

    max_cook_time = parse_max_cook_time(profile.hard_constraints)
    if max_cook_time:
        for recipe in recipes:
            prep_time = recipe.prep_time_minutes
            if prep_time is not None and prep_time > max_cook_time:
                violations.append(
                    f'Hard constraint violation: "{recipe.title}" prep time '
                    f"{_format_minutes(prep_time)} exceeds max {max_cook_time} min."
                )

    return ValidationResult(violations=tuple(violations))


def _normalize(value: object) -> str:
    return str(value or "").lower().strip()


def _format_minutes(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
