"""
Anise - Shopping list.

A meal plan's shopping list is a flat ordered list of free-text items,
each optionally tied to the recipe it came from. Adding items replaces the
list wholesale.
"""

import logging
from typing import Any

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import NotFoundError, PermissionDeniedError
from anise.planning.models import ShoppingList, ShoppingListEntry, ShoppingListItem

logger = logging.getLogger(__name__)


class ShoppingListService:
    def __init__(self, db: DatabaseAdapter):
        self.db = db

    def _owned_plan(self, user_id: int, meal_plan_id: int) -> dict[str, Any]:
        result = self.db.table("meal_plans").select("*").eq("id", meal_plan_id).limit(1).execute()
        if not result.data:
            raise NotFoundError("Meal plan not found")
        plan = result.data[0]
        if plan["user_id"] != user_id:
            raise PermissionDeniedError("Not authorized to modify this shopping list")
        return plan

    def _items(self, meal_plan_id: int) -> list[ShoppingListItem]:
        rows = (
            self.db.table("shopping_list_items")
            .select("*")
            .eq("meal_plan_id", meal_plan_id)
            .order("sort_order")
            .execute()
        ).data

        recipe_ids = sorted({r["recipe_id"] for r in rows if r.get("recipe_id") is not None})
        names: dict[int, str] = {}
        if recipe_ids:
            recipes = self.db.table("recipes").select("id, name").in_("id", recipe_ids).execute().data
            names = {r["id"]: r["name"] for r in recipes}

        return [self._to_item(r, names.get(r.get("recipe_id"))) for r in rows]

    @staticmethod
    def _to_item(row: dict[str, Any], recipe_name: str | None) -> ShoppingListItem:
        return ShoppingListItem(
            id=row["id"],
            recipe_id=row.get("recipe_id"),
            recipe_name=recipe_name,
            ingredient_text=row["ingredient_text"],
            checked=row.get("checked", False),
            sort_order=row["sort_order"],
        )

    async def add_items(
        self,
        user_id: int,
        meal_plan_id: int,
        items: list[ShoppingListEntry],
    ) -> list[ShoppingListItem]:
        """
        Replace the meal plan's shopping list with `items`.

        Raises:
            NotFoundError: no such meal plan
            PermissionDeniedError: the plan belongs to another user
        """
        self._owned_plan(user_id, meal_plan_id)

        self.db.table("shopping_list_items").delete().eq("meal_plan_id", meal_plan_id).execute()
        if items:
            self.db.table("shopping_list_items").insert(
                [
                    {
                        "meal_plan_id": meal_plan_id,
                        "recipe_id": item.recipe_id,
                        "ingredient_text": item.ingredient_text,
                        "sort_order": index,
                        "checked": False,
                    }
                    for index, item in enumerate(items)
                ]
            ).execute()

        logger.info(f"Shopping list for meal plan {meal_plan_id} now has {len(items)} items")
        return self._items(meal_plan_id)

    async def get_active_list(self, user_id: int) -> ShoppingList | None:
        """The list for the user's current meal plan; None if there is no plan or no items."""
        plan = self.db.table("meal_plans").select("id").eq("user_id", user_id).limit(1).execute().data
        if not plan:
            return None

        meal_plan_id = plan[0]["id"]
        items = self._items(meal_plan_id)
        if not items:
            return None
        return ShoppingList(meal_plan_id=meal_plan_id, items=items)

    async def update_item(
        self,
        item_id: int,
        user_id: int,
        *,
        ingredient_text: str | None = None,
        checked: bool | None = None,
    ) -> ShoppingListItem:
        """Edit an item's text and/or checked state."""
        result = self.db.table("shopping_list_items").select("*").eq("id", item_id).limit(1).execute()
        if not result.data:
            raise NotFoundError("Shopping list item not found")
        row = result.data[0]

        plan = self.db.table("meal_plans").select("user_id").eq("id", row["meal_plan_id"]).limit(1).execute().data
        if not plan or plan[0]["user_id"] != user_id:
            raise PermissionDeniedError("Not authorized to update this item")

        updates: dict[str, Any] = {}
        if ingredient_text is not None:
            updates["ingredient_text"] = ingredient_text
        if checked is not None:
            updates["checked"] = checked
        if updates:
            updated = (
                self.db.table("shopping_list_items").update(updates).eq("id", item_id).execute()
            ).data
            if not updated:
                raise RuntimeError(f"Failed to update shopping list item {item_id}")
            row = updated[0]

        recipe_name = None
        if row.get("recipe_id") is not None:
            recipe_name = self._recipe_name(row["recipe_id"])
        return self._to_item(row, recipe_name)

    def _recipe_name(self, recipe_id: int) -> str | None:
        rows = self.db.table("recipes").select("name").eq("id", recipe_id).limit(1).execute().data
        return rows[0]["name"] if rows else None

    async def set_checked(self, item_id: int, user_id: int, checked: bool) -> ShoppingListItem:
        return await self.update_item(item_id, user_id, checked=checked)

    async def clear_list(self, user_id: int, meal_plan_id: int) -> None:
        self._owned_plan(user_id, meal_plan_id)
        self.db.table("shopping_list_items").delete().eq("meal_plan_id", meal_plan_id).execute()
        logger.info(f"Cleared shopping list for meal plan {meal_plan_id}")


def get_shopping_list_service() -> ShoppingListService:
    return ShoppingListService(get_client())
