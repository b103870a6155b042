"""
Pytest configuration and fixtures for Anise tests.

FakeDatabase is an in-memory stand-in for the Supabase client: it speaks
the subset of the PostgREST query builder the stores use. make_llm builds
a StructuredLLM around a fake Instructor client that answers from a
responder function.
"""

import inspect
import os
import re
from collections.abc import Callable
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any

import pytest

# Set test environment before importing anise modules
os.environ["ANISE_ENV"] = "development"
os.environ["ANISE_LOG_PROMPTS"] = "0"

from anise.jobs.audit import AuditLog  # noqa: E402
from anise.llm.client import StructuredLLM  # noqa: E402


# =============================================================================
# Fake PostgREST
# =============================================================================

# parent table -> [(child table, foreign key)]
CASCADES = {
    "recipes": [
        ("recipe_ingredient_groups", "recipe_id"),
        ("recipe_instructions", "recipe_id"),
        ("recipe_notes", "recipe_id"),
        ("meal_plan_meals", "recipe_id"),
    ],
    "recipe_ingredient_groups": [("recipe_ingredients", "group_id")],
    "jobs": [("steps", "job_id")],
    "meal_plans": [("meal_plan_days", "meal_plan_id"), ("shopping_list_items", "meal_plan_id")],
    "meal_plan_days": [("meal_plan_meals", "day_id")],
}

DEFAULTS = {
    "ingredients": {"substitutions": []},
    "shopping_list_items": {"checked": False},
    "recipe_ingredients": {
        "ingredient_id": None,
        "quantity": None,
        "unit": None,
        "note": None,
        "do_not_use": False,
    },
}


def _like(pattern: str) -> re.Pattern:
    parts = [re.escape(p) for p in re.split(r"[*%]", pattern)]
    return re.compile(".*".join(parts), re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, db: "FakeDatabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.on_conflict: str | None = None
        self.filters: list[Callable[[dict], bool]] = []
        self.orders: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.single_mode: str | None = None

    # -- operations ----------------------------------------------------------

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.columns = columns
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload: Any, on_conflict: str | None = None, **_: Any) -> "FakeQuery":
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def update(self, values: dict) -> "FakeQuery":
        self.op, self.payload = "update", values
        return self

    def delete(self) -> "FakeQuery":
        self.op = "delete"
        return self

    # -- filters -------------------------------------------------------------

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda r: r.get(column) != value)
        return self

    def in_(self, column: str, values: list) -> "FakeQuery":
        allowed = list(values)
        self.filters.append(lambda r: r.get(column) in allowed)
        return self

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null"
        self.filters.append(lambda r: r.get(column) is None)
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        regex = _like(pattern)
        self.filters.append(lambda r: bool(regex.fullmatch(str(r.get(column) or ""))))
        return self

    def or_(self, filters: str) -> "FakeQuery":
        checks = []
        for clause in filters.split(","):
            column, op, value = clause.split(".", 2)
            if op == "ilike":
                regex = _like(value)
                checks.append(lambda r, c=column, rx=regex: bool(rx.fullmatch(str(r.get(c) or ""))))
            elif op == "eq":
                checks.append(lambda r, c=column, v=value: str(r.get(c)) == v)
            else:
                raise NotImplementedError(op)
        self.filters.append(lambda r: any(check(r) for check in checks))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, n: int) -> "FakeQuery":
        self.row_limit = n
        return self

    def maybe_single(self) -> "FakeQuery":
        self.single_mode = "maybe"
        return self

    def single(self) -> "FakeQuery":
        self.single_mode = "single"
        return self

    # -- execution -----------------------------------------------------------

    def _matching(self) -> list[dict]:
        return [r for r in self.db.rows(self.table) if all(f(r) for f in self.filters)]

    def _project(self, row: dict) -> dict:
        if self.columns.strip() == "*":
            return dict(row)
        names = [c.strip() for c in self.columns.split(",")]
        return {n: row.get(n) for n in names}

    def execute(self) -> Any:
        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            raise failure

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            data = [self.db.add(self.table, item) for item in items]
        elif self.op == "upsert":
            data = [self.db.upsert(self.table, self.payload, self.on_conflict)]
        elif self.op == "update":
            data = []
            for row in self._matching():
                row.update(self.payload)
                data.append(dict(row))
        elif self.op == "delete":
            data = []
            for row in self._matching():
                self.db.remove(self.table, row)
                data.append(dict(row))
        else:
            rows = self._matching()
            for column, desc in reversed(self.orders):
                rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self.row_limit is not None:
                rows = rows[: self.row_limit]
            data = [self._project(r) for r in rows]

        if self.single_mode == "maybe":
            if not data:
                return None
            return SimpleNamespace(data=data[0], count=1)
        if self.single_mode == "single":
            if len(data) != 1:
                raise RuntimeError(f"Expected exactly one row from {self.table}, got {len(data)}")
            return SimpleNamespace(data=data[0], count=1)
        return SimpleNamespace(data=data, count=len(data))


class FakeDatabase:
    """In-memory tables behind a PostgREST-shaped API."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.next_ids: dict[str, int] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self._clock = datetime(2025, 1, 1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function_name: str, params: dict) -> Any:
        raise NotImplementedError(function_name)

    # -- helpers used by FakeQuery and tests ---------------------------------

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def add(self, table: str, values: dict) -> dict:
        row_id = self.next_ids.get(table, 1)
        self.next_ids[table] = row_id + 1
        self._clock += timedelta(seconds=1)
        row = {**DEFAULTS.get(table, {}), "created_at": self._clock.isoformat(), **values, "id": row_id}
        self.rows(table).append(row)
        return dict(row)

    def upsert(self, table: str, values: dict, on_conflict: str | None) -> dict:
        if on_conflict:
            for row in self.rows(table):
                if row.get(on_conflict) == values.get(on_conflict):
                    row.update(values)
                    return dict(row)
        return self.add(table, values)

    def remove(self, table: str, row: dict) -> None:
        self.tables[table] = [r for r in self.rows(table) if r is not row]
        for child, key in CASCADES.get(table, []):
            for child_row in [r for r in self.rows(child) if r.get(key) == row["id"]]:
                self.remove(child, child_row)

    def seed(self, table: str, *rows: dict) -> list[dict]:
        return [self.add(table, row) for row in rows]

    def fail(self, table: str, op: str, error: Exception | None = None) -> None:
        """Make every `op` on `table` raise."""
        self.failures[(table, op)] = error or RuntimeError(f"{op} on {table} failed")


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def audit(db) -> AuditLog:
    return AuditLog(db)


# =============================================================================
# Fake LLM
# =============================================================================


def make_completion_usage(prompt_tokens: int = 100, completion_tokens: int = 20, cached_tokens: int = 0):
    """Shape of openai.types.CompletionUsage."""
    return SimpleNamespace(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
        prompt_tokens_details=SimpleNamespace(cached_tokens=cached_tokens),
    )


class FakeCompletions:
    """Answers create_with_completion() by calling responder(response_model, user_prompt)."""

    def __init__(self, responder: Callable, model: str, usage: Any):
        self.responder = responder
        self.model = model
        self.usage = usage
        self.calls: list[dict] = []

    async def create_with_completion(self, *, model, messages, response_model, max_retries, temperature):
        user_prompt = messages[-1]["content"]
        self.calls.append(
            {
                "model": model,
                "response_model": response_model,
                "user_prompt": user_prompt,
                "max_retries": max_retries,
            }
        )

        output = self.responder(response_model, user_prompt)
        if inspect.isawaitable(output):
            output = await output
        if isinstance(output, BaseException):
            raise output
        return output, SimpleNamespace(model=self.model, usage=self.usage)


class FakeInstructor:
    def __init__(self, responder: Callable, model: str, usage: Any):
        self.completions = FakeCompletions(responder, model, usage)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def make_llm():
    """
    Factory: make_llm(responder) -> StructuredLLM.

    The fake client is reachable as llm.client, its recorded calls as
    llm.client.completions.calls.
    """

    def _make(
        responder: Callable,
        *,
        model: str = "gpt-4.1-mini",
        usage: Any = None,
    ) -> StructuredLLM:
        client = FakeInstructor(responder, model, usage or make_completion_usage())
        return StructuredLLM(client, model=model, temperature=0)

    return _make


@pytest.fixture
def completion_usage():
    return make_completion_usage
