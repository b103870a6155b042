"""
Anise - Ingredient backfill.

Recipe ingredient rows saved before normalization existed carry only raw
text. This re-runs the parse+match pipeline over every row whose
ingredient_id is null and fills in the structured fields.

Unlike a recipe import, failures are isolated: a row that fails is
reported and left untouched, and the rest continue.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from anise.config import settings
from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import IngredientProcessingError
from anise.ingredients.models import MappedIngredient
from anise.ingredients.pipeline import IngredientProcessor
from anise.jobs import JobResult, run_job, set_job_metadata, step
from anise.jobs.audit import AuditLog

logger = logging.getLogger(__name__)


@dataclass
class BackfillFailure:
    row_id: int
    ingredient: str
    error: str
    phase: str | None = None


@dataclass
class BackfillReport:
    total: int = 0
    succeeded: int = 0
    failures: list[BackfillFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def _failure(row: dict[str, Any], error: Exception) -> BackfillFailure:
    """Failures are reported by row id, not by the pipeline's group/item position."""
    if isinstance(error, IngredientProcessingError):
        return BackfillFailure(row["id"], row["ingredient"], str(error.cause), phase=error.phase)
    return BackfillFailure(row["id"], row["ingredient"], str(error))


class IngredientBackfill:
    def __init__(
        self,
        db: DatabaseAdapter | None = None,
        processor: IngredientProcessor | None = None,
        *,
        concurrency: int | None = None,
        audit: AuditLog | None = None,
    ):
        self.db = db or get_client()
        self.processor = processor or IngredientProcessor()
        self.concurrency = concurrency or settings.ingredient_concurrency
        self.audit = audit

    def pending_rows(self) -> list[dict[str, Any]]:
        return (
            self.db.table("recipe_ingredients")
            .select("id, ingredient")
            .is_("ingredient_id", "null")
            .order("id")
            .execute()
        ).data

    async def _process_row(self, row: dict[str, Any]) -> MappedIngredient:
        mapped = await self.processor.process_ingredient(row["ingredient"])
        self.db.table("recipe_ingredients").update(
            {
                "ingredient_id": mapped.ingredient_id,
                "quantity": mapped.quantity,
                "unit": mapped.unit,
                "note": mapped.note,
            }
        ).eq("id", row["id"]).execute()
        return mapped

    async def _run(self) -> BackfillReport:
        rows = self.pending_rows()
        report = BackfillReport(total=len(rows))
        logger.info(f"Found {len(rows)} ingredient rows to backfill")

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(row: dict[str, Any]) -> None:
            async with semaphore:
                try:
                    await step("backfill-ingredient", self._process_row, row)
                except Exception as e:
                    failure = _failure(row, e)
                    during = f" during {failure.phase}" if failure.phase else ""
                    logger.error(
                        f"Failed to backfill ingredient row {failure.row_id} {failure.ingredient!r}{during}: {failure.error}"
                    )
                    report.failures.append(failure)
                    return
                report.succeeded += 1
                if report.succeeded % 10 == 0:
                    logger.info(f"Progress: {report.succeeded}/{report.total} processed")

        await asyncio.gather(*(run(row) for row in rows))

        report.failures.sort(key=lambda f: f.row_id)
        set_job_metadata(total=report.total, succeeded=report.succeeded, failed=report.failed)
        return report

    async def backfill(self) -> JobResult[BackfillReport]:
        return await run_job("backfill-ingredients", self._run, audit=self.audit)


async def backfill_ingredients() -> JobResult[BackfillReport]:
    """Backfill every un-normalized recipe ingredient row with the default collaborators."""
    return await IngredientBackfill().backfill()
