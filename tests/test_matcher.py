"""
Tests for the ingredient matcher (exact, fuzzy + disambiguation, create).
"""

import asyncio
import re

import pytest

from anise.errors import MatchFailure
from anise.ingredients.catalog import CatalogStore
from anise.ingredients.matcher import IngredientMatcher
from anise.ingredients.models import IngredientMatch
from anise.jobs import run_job


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _target(user_prompt: str) -> str:
    return re.search(r'Ingredient to match: "(.*)"', user_prompt).group(1)


def _new_name_responder(response_model, user_prompt):
    """Never matches; proposes the query itself as the new name."""
    return IngredientMatch(matched_id=None, standardized_name=_target(user_prompt), confidence="high")


def _match(matcher, name, audit):
    return _run(run_job("match", matcher.match, name, audit=audit))


class TestExactPhase:

    def test_exact_hit_skips_llm(self, db, audit, make_llm):
        db.seed("ingredients", *({"name": f"filler {n}"} for n in range(6)), {"name": "garlic"})
        llm = make_llm(lambda model, prompt: pytest.fail("no LLM call expected"))
        matcher = IngredientMatcher(CatalogStore(db), llm)

        outcome = _match(matcher, "garlic", audit)

        assert outcome.result.id == 7
        assert outcome.metadata.usage.total_tokens == 0
        assert [s["name"] for s in db.rows("steps")] == ["match-ingredient-via-exact"]


class TestDisambiguation:

    def test_empty_catalog_creates_entry(self, db, audit, make_llm):
        llm = make_llm(_new_name_responder)
        matcher = IngredientMatcher(CatalogStore(db), llm)

        outcome = _match(matcher, "mandarin orange", audit)

        assert outcome.result.name == "mandarin orange"
        assert [(r["id"], r["name"]) for r in db.rows("ingredients")] == [(outcome.result.id, "mandarin orange")]
        assert "No existing ingredients" in llm.client.completions.calls[0]["user_prompt"]
        assert llm.client.completions.calls[0]["max_retries"] == 0
        step_names = [s["name"] for s in db.rows("steps")]
        assert step_names == [
            "match-ingredient-via-exact",
            "match-ingredient-via-llm",
            "create-ingredient",
        ]
        assert outcome.metadata.usage.total_tokens > 0

    def test_candidates_passed_to_model(self, db, audit, make_llm):
        db.seed("ingredients", {"name": "bell pepper"}, {"name": "garlic"})

        def respond(model, prompt):
            assert 'ID 1: "bell pepper"' in prompt
            assert "garlic" not in prompt
            return IngredientMatch(matched_id=None, standardized_name="green bell pepper", confidence="high")

        matcher = IngredientMatcher(CatalogStore(db), make_llm(respond))
        outcome = _match(matcher, "green bell pepper", audit)

        assert outcome.result.name == "green bell pepper"
        assert outcome.result.id == 3

    def test_match_refetched_by_id(self, db, audit, make_llm):
        db.seed("ingredients", {"name": "scallion"})

        def respond(model, prompt):
            # Model echoes a differently-cased name; the id is what counts
            return IngredientMatch(matched_id=1, standardized_name="Scallion", confidence="high")

        matcher = IngredientMatcher(CatalogStore(db), make_llm(respond))
        outcome = _match(matcher, "scallions", audit)

        assert outcome.result.id == 1
        assert outcome.result.name == "scallion"
        assert len(db.rows("ingredients")) == 1

    def test_vanished_match_is_match_failure(self, db, audit, make_llm):
        db.seed("ingredients", {"name": "chicken breast"})
        llm = make_llm(
            lambda model, prompt: IngredientMatch(matched_id=42, standardized_name="chicken", confidence="medium")
        )
        matcher = IngredientMatcher(CatalogStore(db), llm)

        with pytest.raises(MatchFailure) as exc_info:
            _match(matcher, "chicken thigh", audit)

        assert exc_info.value.ingredient_id == 42
        assert db.rows("jobs")[0]["status"] == "failed"


class TestIdempotence:

    def test_second_match_hits_exact_phase(self, db, audit, make_llm):
        llm = make_llm(_new_name_responder)
        matcher = IngredientMatcher(CatalogStore(db), llm)

        first = _match(matcher, "mandarin orange", audit)
        second = _match(matcher, "mandarin orange", audit)

        assert first.result.id == second.result.id
        assert len(db.rows("ingredients")) == 1
        assert len(llm.client.completions.calls) == 1
        assert second.metadata.usage.total_tokens == 0
