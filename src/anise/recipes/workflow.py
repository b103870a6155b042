"""
Anise - Add-recipe workflow.

    URL ─► scrape-data ─► extract-recipe ─► ingredient pipeline ─► save-recipe

Runs as job "add-recipe"; every stage is a recorded step, and the job's
metadata ends up with the total usage of every LLM call made for the
recipe. Any failure aborts the whole import: nothing is saved.
"""

import logging

from anise.ingredients.pipeline import IngredientProcessor
from anise.jobs import JobResult, llm_step, run_job, set_job_metadata, step
from anise.jobs.audit import AuditLog
from anise.llm.client import StructuredLLM, get_llm
from anise.recipes.extractor import extract_recipe
from anise.recipes.models import MappedRecipe, SavedRecipe
from anise.recipes.scraper import fetch_page_text
from anise.recipes.store import RecipeStore, get_recipe_store

logger = logging.getLogger(__name__)


class RecipeImporter:
    """Wires the import stages together with injectable collaborators."""

    def __init__(
        self,
        *,
        llm: StructuredLLM | None = None,
        processor: IngredientProcessor | None = None,
        store: RecipeStore | None = None,
        audit: AuditLog | None = None,
    ):
        self.llm = llm or get_llm()
        self.processor = processor or IngredientProcessor(llm=self.llm)
        self.store = store or get_recipe_store()
        self.audit = audit

    async def _extract(self, content: str):
        return await extract_recipe(content, llm=self.llm)

    async def _import(self, url: str) -> SavedRecipe:
        set_job_metadata(source_url=url)

        content = await step("scrape-data", fetch_page_text, url)
        recipe = await llm_step("extract-recipe", self._extract, content)
        groups = await self.processor.process_groups(recipe.ingredients)
        mapped = MappedRecipe.from_recipe(recipe, groups)

        return await step("save-recipe", self.store.save_recipe, mapped, url)

    async def add_recipe_by_url(self, url: str) -> JobResult[SavedRecipe]:
        outcome = await run_job("add-recipe", self._import, url, audit=self.audit)
        logger.info(f"Imported {url} as recipe {outcome.result.id}")
        return outcome


async def add_recipe_by_url(url: str) -> JobResult[SavedRecipe]:
    """Import a recipe from `url` with the default collaborators."""
    return await RecipeImporter().add_recipe_by_url(url)
