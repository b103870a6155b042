"""
Batch parsing of ingredient lines from CSV.

A prompt-tuning aid: runs the parser (no catalog matching) over a file of
raw lines and writes one result row per line, errors included. Lines are
parsed one at a time, optionally spaced out to stay under rate limits.
"""

import asyncio
import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path

from anise.errors import AniseError
from anise.ingredients.parser import parse_ingredient
from anise.llm.client import StructuredLLM, get_llm
from anise.observability.usage import UsageStats

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ["original", "quantity", "unit", "name", "note", "cost", "status", "error"]


@dataclass
class BatchRow:
    original: str
    quantity: str = ""
    unit: str = ""
    name: str = ""
    note: str = ""
    cost: str = "0"
    status: str = "success"
    error: str = ""


@dataclass
class BatchSummary:
    rows: list[BatchRow] = field(default_factory=list)
    usage: UsageStats = field(default_factory=UsageStats)

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.rows if r.status == "success")

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def cache_hit_rate(self) -> float:
        """Share of cache-eligible prompt tokens served from cache (0-100)."""
        cached = self.usage.cache_creation_input_tokens + self.usage.cache_read_input_tokens
        if cached == 0:
            return 0.0
        return self.usage.cache_read_input_tokens / cached * 100


def read_lines(path: Path) -> list[str]:
    """First column of every non-empty row; no header."""
    with path.open(newline="", encoding="utf-8") as f:
        return [row[0].strip() for row in csv.reader(f) if row and row[0].strip()]


def write_rows(path: Path, rows: list[BatchRow]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=OUTPUT_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row.__dict__)


async def batch_parse(
    lines: list[str],
    *,
    llm: StructuredLLM | None = None,
    delay_ms: int = 0,
) -> BatchSummary:
    """Parse every line, recording failures as error rows instead of stopping."""
    llm = llm or get_llm()
    summary = BatchSummary()

    for index, line in enumerate(lines):
        logger.info(f"Processing {index + 1}/{len(lines)}: {line[:50]}")
        try:
            result = await parse_ingredient(line, llm=llm)
        except AniseError as e:
            summary.rows.append(BatchRow(original=line, status="error", error=str(e)))
        else:
            parsed = result.parsed
            summary.rows.append(
                BatchRow(
                    original=line,
                    quantity=parsed.quantity or "",
                    unit=parsed.unit or "",
                    name=parsed.name,
                    note=parsed.note or "",
                    cost=f"{result.usage.estimated_cost:.6f}",
                )
            )
            summary.usage.add(result.usage)

        if delay_ms > 0 and index < len(lines) - 1:
            await asyncio.sleep(delay_ms / 1000)

    return summary
