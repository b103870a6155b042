"""Meal plan and shopping list models."""

from typing import Literal

from pydantic import BaseModel, Field

MealType = Literal["lunch", "dinner"]
DayOfWeek = Literal["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

DAYS_OF_WEEK: list[DayOfWeek] = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]


class MealPlanMeal(BaseModel):
    id: int
    recipe_id: int
    recipe_name: str | None = None
    sort_order: int


class MealPlanDay(BaseModel):
    id: int
    day_of_week: DayOfWeek
    date: str  # YYYY-MM-DD
    lunch: list[MealPlanMeal] = Field(default_factory=list)
    dinner: list[MealPlanMeal] = Field(default_factory=list)


class MealPlan(BaseModel):
    id: int
    week_start_day: DayOfWeek
    days: list[MealPlanDay] = Field(default_factory=list)


class ShoppingListEntry(BaseModel):
    """An item to put on the list."""

    recipe_id: int | None = None
    ingredient_text: str = Field(min_length=1)


class ShoppingListItem(BaseModel):
    id: int
    recipe_id: int | None = None
    recipe_name: str | None = None
    ingredient_text: str
    checked: bool = False
    sort_order: int


class ShoppingList(BaseModel):
    meal_plan_id: int
    items: list[ShoppingListItem]
