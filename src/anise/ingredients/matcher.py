"""
Anise - Ingredient Matcher.

Resolves a parsed ingredient name to exactly one catalog entry:

1. Exact lookup on the normalized name (no LLM call)
2. Fuzzy candidates from the catalog, then LLM disambiguation
3. A matched id is re-fetched by id (never by name); no match creates a
   new catalog entry under the model's standardized name

Every path yields a catalog row whose id exists in the catalog.
"""

import logging

from anise.errors import MatchFailure
from anise.ingredients.catalog import DEFAULT_CANDIDATE_LIMIT, CatalogStore, get_catalog
from anise.ingredients.models import IngredientMatch, StandardizedIngredient
from anise.ingredients.prompts import MATCHING_SYSTEM_PROMPT, build_match_prompt
from anise.jobs import llm_step, step
from anise.llm.client import StructuredLLM, get_llm

logger = logging.getLogger(__name__)


class IngredientMatcher:
    """Exact-then-fuzzy-then-create resolution against the catalog."""

    def __init__(
        self,
        catalog: CatalogStore | None = None,
        llm: StructuredLLM | None = None,
        *,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ):
        self.catalog = catalog or get_catalog()
        self.llm = llm or get_llm()
        self.candidate_limit = candidate_limit

    async def match(self, name: str) -> StandardizedIngredient:
        """
        Resolve `name` to a catalog entry, creating one if nothing fits.

        Must run inside a job: each stage is recorded as a step.

        Raises:
            MatchFailure: matched id vanished, or creation failed
            SchemaValidationError / LLMError: disambiguation call failed
        """
        exact = await step("match-ingredient-via-exact", self.catalog.find_by_name, name)
        if exact is not None:
            logger.debug(f"Exact catalog hit for '{name}': {exact.id}")
            return exact

        candidates = await self.catalog.find_similar(name, limit=self.candidate_limit)
        verdict = await llm_step("match-ingredient-via-llm", self.disambiguate, name, candidates)

        if verdict.matched_id is not None:
            if verdict.matched_id not in {c.id for c in candidates}:
                logger.warning(
                    f"Model matched '{name}' to id {verdict.matched_id}, which was not a candidate"
                )
            existing = await self.catalog.find_by_id(verdict.matched_id)
            if existing is None:
                raise MatchFailure(
                    f"Matched ingredient ID {verdict.matched_id} not found in catalog",
                    name=name,
                    ingredient_id=verdict.matched_id,
                )
            logger.debug(f"Matched '{name}' -> {existing.id} '{existing.name}' ({verdict.confidence})")
            return existing

        created = await step("create-ingredient", self.catalog.create, verdict.standardized_name)
        logger.info(f"New catalog ingredient for '{name}': {created.id} '{created.name}'")
        return created

    async def disambiguate(
        self,
        name: str,
        candidates: list[StandardizedIngredient],
    ) -> IngredientMatch:
        """Ask the model to pick a candidate or propose a new standardized name."""
        result = await self.llm.generate(
            response_model=IngredientMatch,
            system_prompt=MATCHING_SYSTEM_PROMPT,
            user_prompt=build_match_prompt(name, candidates),
            name="match-ingredient",
            max_retries=0,
        )
        return result.output
