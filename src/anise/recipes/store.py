"""
Anise - Recipe persistence.

Writes a normalized recipe across its tables and reads it back in display
order. PostgREST offers no client-side transactions, so save_recipe
compensates instead: if any write after the recipe row fails, the recipe
row is deleted (groups, ingredients, instructions and notes cascade) and
the original error re-raised.
"""

import logging
from typing import Any

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import NotFoundError
from anise.recipes.models import (
    MappedRecipe,
    RecipeDetail,
    RecipeIngredient,
    RecipeSummary,
    SavedRecipe,
    StoredIngredientGroup,
)

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = "id, name, cuisine, total_time, source_url, created_at"


class RecipeStore:
    """Recipe CRUD over an injected database adapter."""

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    # =========================================================================
    # Write
    # =========================================================================

    async def save_recipe(self, recipe: MappedRecipe, source_url: str) -> SavedRecipe:
        """Persist a recipe with its mapped ingredients, instructions and notes."""
        result = (
            self.db.table("recipes")
            .insert(
                {
                    "name": recipe.name,
                    "prep_time": recipe.prep_time,
                    "cook_time": recipe.cook_time,
                    "total_time": recipe.total_time,
                    "servings": recipe.servings,
                    "cuisine": recipe.cuisine,
                    "source_url": source_url,
                }
            )
            .execute()
        )
        if not result.data:
            raise RuntimeError(f"Failed to create recipe '{recipe.name}'")
        recipe_id = result.data[0]["id"]

        try:
            self._insert_children(recipe_id, recipe)
        except Exception:
            logger.error(f"Saving recipe {recipe_id} failed; removing partial rows")
            self.db.table("recipes").delete().eq("id", recipe_id).execute()
            raise

        logger.info(f"Saved recipe {recipe_id} '{recipe.name}'")
        return SavedRecipe(id=recipe_id)

    def _insert_children(self, recipe_id: int, recipe: MappedRecipe) -> None:
        for group_index, group in enumerate(recipe.ingredients):
            group_result = (
                self.db.table("recipe_ingredient_groups")
                .insert({"recipe_id": recipe_id, "name": group.name, "sort_order": group_index})
                .execute()
            )
            if not group_result.data:
                raise RuntimeError(f"Failed to create ingredient group {group_index} for recipe {recipe_id}")
            group_id = group_result.data[0]["id"]

            if group.mapped_items:
                self.db.table("recipe_ingredients").insert(
                    [
                        {
                            "group_id": group_id,
                            "ingredient": item.ingredient,
                            "ingredient_id": item.ingredient_id,
                            "quantity": item.quantity,
                            "unit": item.unit,
                            "note": item.note,
                            "sort_order": item_index,
                        }
                        for item_index, item in enumerate(group.mapped_items)
                    ]
                ).execute()

        if recipe.instructions:
            self.db.table("recipe_instructions").insert(
                [
                    {"recipe_id": recipe_id, "instruction": text, "step_number": number}
                    for number, text in enumerate(recipe.instructions, start=1)
                ]
            ).execute()

        if recipe.notes:
            self.db.table("recipe_notes").insert(
                [
                    {"recipe_id": recipe_id, "note": note, "sort_order": index}
                    for index, note in enumerate(recipe.notes)
                ]
            ).execute()

    async def update_ingredient(
        self,
        row_id: int,
        *,
        ingredient: str | None = None,
        do_not_use: bool | None = None,
        sort_order: int | None = None,
    ) -> RecipeIngredient:
        """
        Edit one stored ingredient line. Only the fields given are changed.

        Raises:
            ValueError: no field given, blank ingredient text or negative sort order
            NotFoundError: no ingredient row with that id
        """
        updates: dict[str, Any] = {}
        if ingredient is not None:
            if not ingredient.strip():
                raise ValueError("Ingredient text must not be empty")
            updates["ingredient"] = ingredient
        if do_not_use is not None:
            updates["do_not_use"] = do_not_use
        if sort_order is not None:
            if sort_order < 0:
                raise ValueError("Sort order must be zero or greater")
            updates["sort_order"] = sort_order
        if not updates:
            raise ValueError("At least one field must be provided for update")

        result = self.db.table("recipe_ingredients").update(updates).eq("id", row_id).execute()
        if not result.data:
            raise NotFoundError(f"Ingredient {row_id} not found")

        logger.info(f"Updated recipe ingredient {row_id}: {sorted(updates)}")
        return self._with_names(result.data)[0]

    async def delete_recipe(self, recipe_id: int) -> None:
        result = self.db.table("recipes").delete().eq("id", recipe_id).execute()
        if not result.data:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        logger.info(f"Deleted recipe {recipe_id}")

    # =========================================================================
    # Read
    # =========================================================================

    async def list_recipes(self) -> list[RecipeSummary]:
        """All recipes, newest first."""
        result = (
            self.db.table("recipes").select(SUMMARY_COLUMNS).order("created_at", desc=True).execute()
        )
        return [RecipeSummary(**row) for row in result.data]

    async def get_recipe(self, recipe_id: int) -> RecipeDetail:
        """
        A recipe with everything in display order.

        Raises:
            NotFoundError: no recipe with that id
        """
        result = self.db.table("recipes").select("*").eq("id", recipe_id).limit(1).execute()
        if not result.data:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        row = result.data[0]

        groups = (
            self.db.table("recipe_ingredient_groups")
            .select("id, name")
            .eq("recipe_id", recipe_id)
            .order("sort_order")
            .execute()
        ).data

        stored_groups = []
        for group in groups:
            items = (
                self.db.table("recipe_ingredients")
                .select("*")
                .eq("group_id", group["id"])
                .order("sort_order")
                .execute()
            ).data
            stored_groups.append(
                StoredIngredientGroup(id=group["id"], name=group["name"], items=self._with_names(items))
            )

        instructions = (
            self.db.table("recipe_instructions")
            .select("instruction")
            .eq("recipe_id", recipe_id)
            .order("step_number")
            .execute()
        ).data
        notes = (
            self.db.table("recipe_notes")
            .select("note")
            .eq("recipe_id", recipe_id)
            .order("sort_order")
            .execute()
        ).data

        return RecipeDetail(
            id=row["id"],
            name=row["name"],
            prep_time=row.get("prep_time"),
            cook_time=row.get("cook_time"),
            total_time=row.get("total_time"),
            servings=row.get("servings"),
            cuisine=row.get("cuisine"),
            source_url=row.get("source_url"),
            created_at=row.get("created_at"),
            ingredient_groups=stored_groups,
            instructions=[i["instruction"] for i in instructions],
            notes=[n["note"] for n in notes],
        )

    def _with_names(self, rows: list[dict[str, Any]]) -> list[RecipeIngredient]:
        """Attach catalog names to ingredient rows."""
        ids = sorted({r["ingredient_id"] for r in rows if r.get("ingredient_id") is not None})
        names: dict[int, str] = {}
        if ids:
            catalog_rows = self.db.table("ingredients").select("id, name").in_("id", ids).execute().data
            names = {c["id"]: c["name"] for c in catalog_rows}

        return [
            RecipeIngredient(
                id=r["id"],
                ingredient=r["ingredient"],
                ingredient_id=r.get("ingredient_id"),
                name=names.get(r.get("ingredient_id")),
                quantity=r.get("quantity"),
                unit=r.get("unit"),
                note=r.get("note"),
                do_not_use=r.get("do_not_use") or False,
            )
            for r in rows
        ]


_store: RecipeStore | None = None


def get_recipe_store() -> RecipeStore:
    """Default RecipeStore bound to the shared Supabase client."""
    global _store
    if _store is None:
        _store = RecipeStore(get_client())
    return _store
