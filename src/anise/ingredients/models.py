"""Data models for the ingredient normalization pipeline."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ParsedIngredient(BaseModel):
    """
    One raw ingredient line decomposed into structured fields.

    Also the response schema the parsing model must satisfy. Immutable:
    re-parsing produces a new value.
    """

    model_config = ConfigDict(frozen=True)

    quantity: str | None = Field(
        description=(
            'The quantity/amount as written (e.g., "2", "1/2", "2-3", "a pinch"). '
            'Null if not specified or "to taste".'
        ),
    )
    unit: str | None = Field(
        description=(
            'The unit of measurement, singular (e.g., "cup", "tbsp", "oz", "gram"). '
            "Null if not specified or for count-based items."
        ),
    )
    name: str = Field(
        description=(
            'The ingredient name, singular form, keeping identity modifiers '
            '(e.g., "green bell pepper", "mandarin orange", "olive oil").'
        ),
    )
    note: str | None = Field(
        description=(
            'Preparation, state or optionality (e.g., "diced", "room temperature", '
            '"optional", "to taste"). Null if none.'
        ),
    )


class IngredientMatch(BaseModel):
    """Disambiguation verdict for a name that missed the exact lookup."""

    matched_id: int | None = Field(
        description="The ID of the matched catalog ingredient. Null if no good match found.",
    )
    standardized_name: str = Field(
        description=(
            "The standardized name to use. If matched_id is set, the matched ingredient's name; "
            "otherwise the suggested new standardized name."
        ),
    )
    confidence: Literal["high", "medium", "low"] = Field(
        description='"high" for exact/synonym matches, "medium" for likely matches, "low" for uncertain.',
    )


class StandardizedIngredient(BaseModel):
    """A catalog row."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class IngredientGroup(BaseModel):
    """A recipe's ingredient group before normalization."""

    name: str | None = None
    items: list[str] = Field(default_factory=list)


class MappedIngredient(BaseModel):
    """A fully resolved ingredient line, ready to persist."""

    ingredient: str  # raw text, kept for audit and older clients
    ingredient_id: int
    name: str
    quantity: str | None = None
    unit: str | None = None
    note: str | None = None


class MappedIngredientGroup(BaseModel):
    """A recipe's ingredient group after normalization."""

    name: str | None = None
    mapped_items: list[MappedIngredient] = Field(default_factory=list)
