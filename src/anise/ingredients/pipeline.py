"""
Anise - Batch Orchestrator.

Turns a recipe's raw ingredient groups into mapped groups:

    groups ─► flatten (group_index, item_index) ─► bounded fan-out
          ─► per item: parse ─► match ─► MappedIngredient
          ─► regroup by tag (original order, regardless of completion order)

Failure policy is fail-fast: the first item to fail cancels the items
still in flight and the batch raises IngredientProcessingError naming the
raw line, its position and the phase that broke. Nothing is returned for a
failed batch, so no recipe is ever saved with a partial ingredient list.
Catalog entries created by items that finished before the failure remain;
they are valid standalone rows.
"""

import asyncio
import logging

from pydantic import BaseModel

from anise.config import settings
from anise.errors import IngredientProcessingError
from anise.ingredients.catalog import CatalogStore, get_catalog
from anise.ingredients.matcher import IngredientMatcher
from anise.ingredients.models import (
    IngredientGroup,
    MappedIngredient,
    MappedIngredientGroup,
    ParsedIngredient,
)
from anise.ingredients.parser import parse_ingredient
from anise.jobs import llm_step, step
from anise.llm.client import StructuredLLM, get_llm

logger = logging.getLogger(__name__)


class IngredientWorkItem(BaseModel):
    """One raw line tagged with its position in the recipe."""

    raw_line: str
    group_index: int
    item_index: int


def flatten_groups(groups: list[IngredientGroup]) -> list[IngredientWorkItem]:
    return [
        IngredientWorkItem(raw_line=raw, group_index=g, item_index=i)
        for g, group in enumerate(groups)
        for i, raw in enumerate(group.items)
    ]


class IngredientProcessor:
    """Parse and match ingredient lines, one at a time or a whole recipe at once."""

    def __init__(
        self,
        catalog: CatalogStore | None = None,
        llm: StructuredLLM | None = None,
        *,
        concurrency: int | None = None,
    ):
        self.llm = llm or get_llm()
        self.matcher = IngredientMatcher(catalog or get_catalog(), self.llm)
        self.concurrency = concurrency or settings.ingredient_concurrency

    async def _parse(self, raw_line: str) -> ParsedIngredient:
        result = await parse_ingredient(raw_line, llm=self.llm)
        return result.parsed

    async def process_ingredient(
        self,
        raw_line: str,
        *,
        group_index: int = 0,
        item_index: int = 0,
    ) -> MappedIngredient:
        """
        Parse one raw line and resolve it against the catalog.

        Raises:
            IngredientProcessingError: wraps the underlying failure with the
                phase ("parse" or "match") it happened in
        """
        phase = "parse"
        try:
            parsed = await llm_step("llm-parse-ingredient", self._parse, raw_line)
            phase = "match"
            matched = await self.matcher.match(parsed.name)
        except Exception as e:
            raise IngredientProcessingError(
                raw_line,
                group_index=group_index,
                item_index=item_index,
                phase=phase,
                cause=e,
            ) from e

        return MappedIngredient(
            ingredient=raw_line,
            ingredient_id=matched.id,
            name=matched.name,
            quantity=parsed.quantity,
            unit=parsed.unit,
            note=parsed.note,
        )

    async def _process_item(self, item: IngredientWorkItem) -> MappedIngredient:
        return await self.process_ingredient(
            item.raw_line,
            group_index=item.group_index,
            item_index=item.item_index,
        )

    async def process_groups(self, groups: list[IngredientGroup]) -> list[MappedIngredientGroup]:
        """
        Normalize every ingredient of a recipe.

        At most `concurrency` items are in flight at once. Output groups
        keep input group order and names; items keep input item order.
        """
        work = flatten_groups(groups)
        if not work:
            return [MappedIngredientGroup(name=g.name, mapped_items=[]) for g in groups]

        logger.info(
            f"Processing {len(work)} ingredients in {len(groups)} groups "
            f"(concurrency={self.concurrency})"
        )
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(item: IngredientWorkItem) -> tuple[IngredientWorkItem, MappedIngredient]:
            async with semaphore:
                mapped = await step("process-ingredient", self._process_item, item)
                return item, mapped

        tasks = [asyncio.create_task(run(item)) for item in work]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        mapped_groups = [MappedIngredientGroup(name=g.name, mapped_items=[]) for g in groups]
        for item, mapped in sorted(results, key=lambda r: (r[0].group_index, r[0].item_index)):
            mapped_groups[item.group_index].mapped_items.append(mapped)

        return mapped_groups
