"""Keyword-based shopping aisle classification."""

AISLE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "Produce",
        (
            "apple",
            "banana",
            "orange",
            "lettuce",
            "spinach",
            "kale",
            "broccoli",
            "carrot",
            "onion",
            "garlic",
            "pepper",
            "tomato",
            "cucumber",
            "avocado",
            "potato",
            "zucchini",
            "lime",
            "lemon",
            "berries",
            "cilantro",
            "parsley",
        ),
    ),
    (
        "Protein",
        (
            "chicken",
            "beef",
            "turkey",
            "pork",
            "salmon",
            "tuna",
            "shrimp",
            "tofu",
            "tempeh",
            "beans",
            "lentils",
            "ground",
        ),
    ),
    (
        "Dairy & Eggs",
        (
            "milk",
            "yogurt",
            "butter",
            "cheese",
            "cream",
            "egg",
            "parmesan",
            "mozzarella",
            "feta",
        ),
    ),
    (
        "Grains & Bread",
        (
            "rice",
            "pasta",
            "bread",
            "tortilla",
            "oats",
            "quinoa",
            "flour",
            "noodle",
            "cereal",
        ),
    ),
    (
        "Pantry",
        (
            "olive oil",
            "oil",
            "vinegar",
            "soy sauce",
            "sauce",
            "broth",
            "stock",
            "can",
            "canned",
            "tomato paste",
            "mustard",
            "ketchup",
            "mayo",
            "sugar",
            "salt",
            "pepper",
            "paprika",
            "cumin",
            "oregano",
            "basil",
            "spice",
        ),
    ),
    ("Frozen", ("frozen",)),
    ("Snacks", ("chips", "cracker", "nuts", "trail mix")),
    ("Beverages", ("coffee", "tea", "juice", "soda", "water")),
)

DEFAULT_AISLE = "Other"


def classify_aisle(name: str | None) -> str:
    """Return the first aisle whose keywords appear in the ingredient name."""
    normalized = str(name or "").lower()
    for aisle, keywords in AISLE_RULES:
        if any(keyword in normalized for keyword in keywords):
            return aisle
    return DEFAULT_AISLE
