"""
Recipe models.

RecipeData doubles as the extraction schema: field descriptions and
length limits are what the model sees, and what Instructor validates.
"""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from anise.ingredients.models import IngredientGroup, MappedIngredientGroup

IngredientLine = Annotated[
    str,
    StringConstraints(min_length=1, max_length=200),
    Field(description="Individual ingredient with quantity and description"),
]
InstructionText = Annotated[
    str,
    StringConstraints(min_length=1, max_length=500),
    Field(description="Individual step in the cooking process"),
]
NoteText = Annotated[
    str,
    StringConstraints(min_length=1, max_length=200),
    Field(description="Individual important note, tip, or variation"),
]


class RecipeIngredientGroup(IngredientGroup):
    """An ingredient group as extracted from a page."""

    name: str | None = Field(
        default=None,
        max_length=100,
        description=(
            'Name of ingredient group (e.g., "For the marinade", "For the sauce"). '
            "Leave blank if only one group."
        ),
    )
    items: list[IngredientLine] = Field(
        min_length=1,
        max_length=30,
        description="List of ingredients in this group",
    )


class RecipeData(BaseModel):
    """A structured recipe extracted from page text."""

    name: str = Field(
        min_length=1,
        max_length=200,
        description=(
            "The name of the recipe. Keep this as generic as possible while still being "
            "descriptive. Shorter is better. Omit unnecessary words."
        ),
    )
    prep_time: str | None = Field(
        default=None,
        max_length=50,
        description='Preparation time listed in the recipe (e.g., "15 minutes", "1 hour")',
    )
    cook_time: str | None = Field(
        default=None,
        max_length=50,
        description='Cooking time listed in the recipe (e.g., "30 minutes", "2 hours")',
    )
    total_time: str | None = Field(
        default=None,
        max_length=50,
        description="Total time from start to finish (listed in the recipe -- do not calculate this yourself)",
    )
    servings: str | None = Field(
        default=None,
        max_length=50,
        description='Number of servings (e.g., "4 people", "6-8 servings")',
    )
    cuisine: str | None = Field(
        default=None,
        max_length=100,
        description='Type of cuisine (e.g., "Italian", "Chinese", "American")',
    )
    ingredients: list[RecipeIngredientGroup] = Field(
        min_length=1,
        max_length=10,
        description=(
            "Ingredient groups. Most recipes have one group (leave name blank). Use multiple "
            'groups for recipes with sections like "For the marinade", "For the main dish", etc.'
        ),
    )
    instructions: list[InstructionText] = Field(
        min_length=1,
        max_length=30,
        description="Step-by-step cooking instructions",
    )
    notes: list[NoteText] | None = Field(
        default=None,
        max_length=6,
        description=(
            "Only the most important notes, tips, or variations. "
            "If not critically important, omit entirely."
        ),
    )


class MappedRecipe(BaseModel):
    """A recipe whose ingredients have been normalized against the catalog."""

    name: str
    prep_time: str | None = None
    cook_time: str | None = None
    total_time: str | None = None
    servings: str | None = None
    cuisine: str | None = None
    ingredients: list[MappedIngredientGroup]
    instructions: list[str]
    notes: list[str] | None = None

    @classmethod
    def from_recipe(cls, recipe: RecipeData, groups: list[MappedIngredientGroup]) -> "MappedRecipe":
        return cls(**recipe.model_dump(exclude={"ingredients"}), ingredients=groups)


class SavedRecipe(BaseModel):
    id: int


# =============================================================================
# Read models
# =============================================================================


class RecipeIngredient(BaseModel):
    """A stored ingredient line. ingredient_id is None until backfilled."""

    id: int
    ingredient: str
    ingredient_id: int | None = None
    name: str | None = None
    quantity: str | None = None
    unit: str | None = None
    note: str | None = None
    do_not_use: bool = False


class StoredIngredientGroup(BaseModel):
    id: int
    name: str | None = None
    items: list[RecipeIngredient] = Field(default_factory=list)


class RecipeSummary(BaseModel):
    id: int
    name: str
    cuisine: str | None = None
    total_time: str | None = None
    source_url: str | None = None
    created_at: str | None = None


class RecipeDetail(RecipeSummary):
    prep_time: str | None = None
    cook_time: str | None = None
    servings: str | None = None
    ingredient_groups: list[StoredIngredientGroup] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
