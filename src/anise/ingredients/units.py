"""
Anise - Unit Normalization.

The parsing model is asked for singular, canonical units; this table
enforces it deterministically on whatever the model returns.
"""

# Canonical unit -> spellings that mean the same thing (lowercase, no periods)
CANONICAL_UNITS: dict[str, set[str]] = {
    "cup": {"cup", "cups", "c"},
    "tbsp": {"tbsp", "tbsps", "tbs", "tbl", "tablespoon", "tablespoons"},
    "tsp": {"tsp", "tsps", "teaspoon", "teaspoons"},
    "fl oz": {"fl oz", "fluid ounce", "fluid ounces", "floz"},
    "oz": {"oz", "ozs", "ounce", "ounces"},
    "lb": {"lb", "lbs", "pound", "pounds"},
    "g": {"g", "gram", "grams", "gr"},
    "kg": {"kg", "kgs", "kilogram", "kilograms"},
    "ml": {"ml", "milliliter", "milliliters", "millilitre", "millilitres"},
    "l": {"l", "liter", "liters", "litre", "litres"},
    "pint": {"pint", "pints", "pt"},
    "quart": {"quart", "quarts", "qt"},
    "gallon": {"gallon", "gallons", "gal"},
    "clove": {"clove", "cloves"},
    "can": {"can", "cans"},
    "package": {"package", "packages", "pkg"},
    "pinch": {"pinch", "pinches"},
    "dash": {"dash", "dashes"},
    "slice": {"slice", "slices"},
    "stick": {"stick", "sticks"},
    "bunch": {"bunch", "bunches"},
    "head": {"head", "heads"},
    "sprig": {"sprig", "sprigs"},
    "piece": {"piece", "pieces"},
}

# Case matters for the one-letter cooking abbreviations: "T" is a tablespoon, "t" a teaspoon.
CASE_SENSITIVE_UNITS: dict[str, str] = {
    "T": "tbsp",
    "Tbsp": "tbsp",
    "t": "tsp",
}

UNIT_ALIASES: dict[str, str] = {
    alias: canonical for canonical, aliases in CANONICAL_UNITS.items() for alias in aliases
}


def normalize_unit(unit: str | None) -> str | None:
    """
    Map a unit to its singular canonical form.

    Unknown units are lowercased and returned as-is; blank units become None.

    Examples:
        "cups" -> "cup"
        "T" -> "tbsp"
        "Tablespoons" -> "tbsp"
        "" -> None
    """
    if unit is None:
        return None

    stripped = unit.strip().rstrip(".")
    if not stripped:
        return None

    if stripped in CASE_SENSITIVE_UNITS:
        return CASE_SENSITIVE_UNITS[stripped]

    lowered = stripped.lower()
    return UNIT_ALIASES.get(lowered, lowered)
