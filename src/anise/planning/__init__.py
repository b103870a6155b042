"""Anise - Meal planning and shopping lists."""

from anise.planning.meal_plan import DEFAULT_USER_ID, MealPlanService, get_meal_plan_service, week_dates
from anise.planning.models import (
    MealPlan,
    MealPlanDay,
    MealPlanMeal,
    ShoppingList,
    ShoppingListEntry,
    ShoppingListItem,
)
from anise.planning.shopping_list import ShoppingListService, get_shopping_list_service

__all__ = [
    "DEFAULT_USER_ID",
    "MealPlan",
    "MealPlanDay",
    "MealPlanMeal",
    "MealPlanService",
    "ShoppingList",
    "ShoppingListEntry",
    "ShoppingListItem",
    "ShoppingListService",
    "get_meal_plan_service",
    "get_shopping_list_service",
    "week_dates",
]
