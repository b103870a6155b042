"""
Anise - Meal planning.

One meal plan per user: seven day rows dated for the current week,
starting on the user's preferred day, each holding ordered lunch and
dinner recipe slots. There is no authentication yet; everything runs as
DEFAULT_USER_ID.
"""

import logging
from datetime import date, timedelta
from typing import Any

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import NotFoundError
from anise.planning.models import (
    DAYS_OF_WEEK,
    DayOfWeek,
    MealPlan,
    MealPlanDay,
    MealPlanMeal,
    MealType,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = 1


def week_dates(week_start_day: DayOfWeek, today: date | None = None) -> list[tuple[DayOfWeek, date]]:
    """
    The seven (day, date) pairs of the week containing `today`.

    Example: week_start_day="monday", today=Wednesday 2025-11-26
    -> [("monday", 2025-11-24), ..., ("sunday", 2025-11-30)]
    """
    today = today or date.today()
    # date.weekday(): Monday=0; DAYS_OF_WEEK index: Sunday=0
    today_index = (today.weekday() + 1) % 7
    start_index = DAYS_OF_WEEK.index(week_start_day)
    start = today - timedelta(days=(today_index - start_index) % 7)
    return [
        (DAYS_OF_WEEK[(start_index + offset) % 7], start + timedelta(days=offset))
        for offset in range(7)
    ]


class MealPlanService:
    def __init__(self, db: DatabaseAdapter, user_id: int = DEFAULT_USER_ID):
        self.db = db
        self.user_id = user_id

    def _find_plan(self) -> dict[str, Any] | None:
        result = (
            self.db.table("meal_plans").select("*").eq("user_id", self.user_id).limit(1).execute()
        )
        return result.data[0] if result.data else None

    def _create_days(self, meal_plan_id: int, week_start_day: DayOfWeek, today: date | None) -> None:
        self.db.table("meal_plan_days").insert(
            [
                {"meal_plan_id": meal_plan_id, "day_of_week": day, "date": day_date.isoformat()}
                for day, day_date in week_dates(week_start_day, today)
            ]
        ).execute()

    async def get_meal_plan(self, today: date | None = None) -> MealPlan:
        """The user's meal plan, created (starting Sunday) on first access."""
        plan = self._find_plan()
        if plan is None:
            result = (
                self.db.table("meal_plans")
                .insert({"user_id": self.user_id, "week_start_day": "sunday"})
                .execute()
            )
            if not result.data:
                raise RuntimeError("Failed to create meal plan")
            plan = result.data[0]
            self._create_days(plan["id"], "sunday", today)
            logger.info(f"Created meal plan {plan['id']} for user {self.user_id}")

        return self._load(plan)

    def _load(self, plan: dict[str, Any]) -> MealPlan:
        days = (
            self.db.table("meal_plan_days")
            .select("*")
            .eq("meal_plan_id", plan["id"])
            .order("date")
            .execute()
        ).data

        meals: list[dict[str, Any]] = []
        if days:
            meals = (
                self.db.table("meal_plan_meals")
                .select("*")
                .in_("day_id", [d["id"] for d in days])
                .order("sort_order")
                .execute()
            ).data

        recipe_names = self._recipe_names({m["recipe_id"] for m in meals})

        def slot(day_id: int, meal_type: MealType) -> list[MealPlanMeal]:
            return [
                MealPlanMeal(
                    id=m["id"],
                    recipe_id=m["recipe_id"],
                    recipe_name=recipe_names.get(m["recipe_id"]),
                    sort_order=m["sort_order"],
                )
                for m in meals
                if m["day_id"] == day_id and m["meal_type"] == meal_type
            ]

        return MealPlan(
            id=plan["id"],
            week_start_day=plan["week_start_day"],
            days=[
                MealPlanDay(
                    id=d["id"],
                    day_of_week=d["day_of_week"],
                    date=d["date"],
                    lunch=slot(d["id"], "lunch"),
                    dinner=slot(d["id"], "dinner"),
                )
                for d in days
            ],
        )

    def _recipe_names(self, recipe_ids: set[int]) -> dict[int, str]:
        if not recipe_ids:
            return {}
        rows = (
            self.db.table("recipes").select("id, name").in_("id", sorted(recipe_ids)).execute()
        ).data
        return {r["id"]: r["name"] for r in rows}

    async def add_meal(self, day_id: int, meal_type: MealType, recipe_id: int) -> MealPlanMeal:
        """Append a recipe to a day's lunch or dinner slot."""
        existing = (
            self.db.table("meal_plan_meals")
            .select("sort_order")
            .eq("day_id", day_id)
            .eq("meal_type", meal_type)
            .execute()
        ).data
        next_order = max((m["sort_order"] for m in existing), default=-1) + 1

        result = (
            self.db.table("meal_plan_meals")
            .insert(
                {
                    "day_id": day_id,
                    "meal_type": meal_type,
                    "recipe_id": recipe_id,
                    "sort_order": next_order,
                }
            )
            .execute()
        )
        if not result.data:
            raise RuntimeError(f"Failed to add recipe {recipe_id} to day {day_id}")
        meal = result.data[0]

        return MealPlanMeal(
            id=meal["id"],
            recipe_id=recipe_id,
            recipe_name=self._recipe_names({recipe_id}).get(recipe_id),
            sort_order=meal["sort_order"],
        )

    async def remove_meal(self, meal_id: int) -> None:
        self.db.table("meal_plan_meals").delete().eq("id", meal_id).execute()

    async def update_week_start_day(self, week_start_day: DayOfWeek, today: date | None = None) -> None:
        """
        Change the day the week starts on.

        Day rows are recreated, which drops every planned meal.
        """
        plan = self._find_plan()
        if plan is None:
            raise NotFoundError(f"No meal plan found for user {self.user_id}")

        self.db.table("meal_plans").update({"week_start_day": week_start_day}).eq("id", plan["id"]).execute()
        self.db.table("meal_plan_days").delete().eq("meal_plan_id", plan["id"]).execute()
        self._create_days(plan["id"], week_start_day, today)
        logger.info(f"Meal plan {plan['id']} now starts on {week_start_day}")


def get_meal_plan_service() -> MealPlanService:
    return MealPlanService(get_client())
