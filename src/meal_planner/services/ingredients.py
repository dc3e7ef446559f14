"""Free-text ingredient line parsing."""

import math
import re
from types import MappingProxyType

from meal_planner.domain.shopping import ParsedIngredient

UNIT_ALIASES = MappingProxyType(
    {
        "tsp": "tsp",
        "teaspoon": "tsp",
        "teaspoons": "tsp",
        "tbsp": "tbsp",
        "tablespoon": "tbsp",
        "tablespoons": "tbsp",
        "cup": "cup",
        "cups": "cup",
        "oz": "oz",
        "ounce": "oz",
        "ounces": "oz",
        "lb": "lb",
        "lbs": "lb",
        "pound": "lb",
        "pounds": "lb",
        "g": "g",
        "gram": "g",
        "grams": "g",
        "kg": "kg",
        "kilogram": "kg",
        "kilograms": "kg",
        "ml": "ml",
        "milliliter": "ml",
        "milliliters": "ml",
        "l": "l",
        "liter": "l",
        "liters": "l",
        "clove": "clove",
        "cloves": "clove",
        "can": "can",
        "cans": "can",
        "package": "package",
        "packages": "package",
        "slice": "slice",
        "slices": "slice",
        "piece": "piece",
        "pieces": "piece",
    }
)

_PARENTHETICAL = re.compile(r"\([^)]*\)")
_WHITESPACE = re.compile(r"\s+")
_LEADING_QUANTITY = re.compile(r"^(\d+\s+\d+/\d+|\d+/\d+|\d*\.?\d+)\s+(.+)$")
_MIXED_NUMBER = re.compile(r"^\d+\s+\d+/\d+$")
_FRACTION = re.compile(r"^\d+/\d+$")
_DECIMAL = re.compile(r"^\d*\.?\d+$")
_NON_LETTERS = re.compile(r"[^a-z]")
_LEADING_OF = re.compile(r"^of\s+")


def parse_ingredient_line(line: str | None) -> ParsedIngredient | None:
    """Split a free-text ingredient line into quantity, unit and name.

    Returns None when nothing is left after cleanup. A line without a
    recognizable quantity is still returned, with ``quantity`` set to None,
    so callers can route it to manual review.
    """
    original = str(line or "").strip()
    if not original:
        return None

    cleaned = _PARENTHETICAL.sub(" ", original.lower()).replace(",", " ")
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if not cleaned:
        return None

    quantity: float | None = None
    remaining = cleaned
    match = _LEADING_QUANTITY.match(cleaned)
    if match:
        quantity = parse_quantity(match.group(1))
        remaining = match.group(2)
    elif cleaned.startswith("a "):
        quantity = 1.0
        remaining = cleaned[2:]
    elif cleaned.startswith("an "):
        quantity = 1.0
        remaining = cleaned[3:]

    unit: str | None = None
    tokens = remaining.split()
    if len(tokens) > 1:
        candidate = _NON_LETTERS.sub("", tokens[0])
        if candidate in UNIT_ALIASES:
            unit = UNIT_ALIASES[candidate]
            remaining = " ".join(tokens[1:])

    name = _LEADING_OF.sub("", remaining).strip()
    if not name:
        return None

    return ParsedIngredient(
        original=original,
        quantity=quantity,
        unit=unit,
        normalized_name=name,
        display_name=title_case(name),
    )


def parse_quantity(value: str) -> float | None:
    """Parse a whole number, decimal, simple fraction or mixed number.

    Values that overflow a float parse as no quantity.
    """
    try:
        quantity = _parse_number(value.strip())
    except (OverflowError, ValueError):
        return None
    if quantity is None or not math.isfinite(quantity):
        return None
    return quantity


def _parse_number(text: str) -> float | None:
    if _MIXED_NUMBER.match(text):
        whole, fraction = text.split()
        fraction_value = _parse_fraction(fraction)
        if fraction_value is None:
            return None
        return int(whole) + fraction_value
    if _FRACTION.match(text):
        return _parse_fraction(text)
    if _DECIMAL.match(text):
        return float(text)
    return None


def title_case(value: str) -> str:
    """Capitalize the first letter of each word, leaving the rest untouched."""
    return " ".join(word[:1].upper() + word[1:] for word in value.split(" ") if word)


def _parse_fraction(value: str) -> float | None:
    numerator, denominator = (int(part) for part in value.split("/"))
    if not numerator or not denominator:
        return None
    return numerator / denominator
