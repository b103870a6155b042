"""
Tests for CSV batch parsing.
"""

import asyncio
import csv
from unittest.mock import AsyncMock, patch

from anise.ingredients.batch import (
    OUTPUT_COLUMNS,
    BatchRow,
    batch_parse,
    read_lines,
    write_rows,
)
from anise.ingredients.models import ParsedIngredient


def _run(coro):
    return asyncio.run(coro)


def _responder(response_model, user_prompt):
    raw = user_prompt.split("\n\n", 1)[1]
    if raw == "1/2 tsp salt":
        return ParsedIngredient(quantity="1/2", unit="tsp", name="salt", note=None)
    return ParsedIngredient(quantity=None, unit=None, name="salt and pepper", note="to taste")


class TestCsvFiles:
    def test_read_lines_skips_blank_rows_and_keeps_first_column(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text('2 cups flour\n\n"1/2 tsp salt, fine",extra\n   \n', encoding="utf-8")

        assert read_lines(path) == ["2 cups flour", "1/2 tsp salt, fine"]

    def test_write_rows_emits_header_and_columns(self, tmp_path):
        path = tmp_path / "out.csv"
        write_rows(path, [BatchRow(original="1 egg", quantity="1", name="egg", cost="0.000010")])

        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        assert list(rows[0].keys()) == OUTPUT_COLUMNS
        assert rows[0]["name"] == "egg"
        assert rows[0]["unit"] == ""
        assert rows[0]["status"] == "success"


class TestBatchParse:
    def test_success_rows_and_totals(self, make_llm):
        llm = make_llm(_responder)

        summary = _run(batch_parse(["1/2 tsp salt", "Salt and pepper to taste"], llm=llm))

        assert summary.total == 2
        assert summary.succeeded == 2
        assert summary.failed == 0
        first, second = summary.rows
        assert (first.quantity, first.unit, first.name, first.note) == ("1/2", "tsp", "salt", "")
        assert second.quantity == ""
        assert second.note == "to taste"
        # 100 prompt tokens at $0.40/M + 20 completion tokens at $1.60/M
        assert first.cost == "0.000072"
        assert summary.usage.input_tokens == 200
        assert summary.usage.output_tokens == 40

    def test_failure_becomes_error_row_and_batch_continues(self, make_llm):
        llm = make_llm(_responder)

        summary = _run(batch_parse(["", "1/2 tsp salt"], llm=llm))

        assert summary.failed == 1
        assert summary.rows[0].status == "error"
        assert summary.rows[0].error
        assert summary.rows[0].cost == "0"
        assert summary.rows[1].status == "success"
        assert len(llm.client.completions.calls) == 1

    def test_cache_hit_rate(self, make_llm, completion_usage):
        llm = make_llm(_responder, usage=completion_usage(prompt_tokens=100, cached_tokens=60))

        summary = _run(batch_parse(["1/2 tsp salt"], llm=llm))

        assert summary.usage.cache_read_input_tokens == 60
        assert summary.cache_hit_rate == 100.0

    def test_delay_only_between_lines(self, make_llm):
        llm = make_llm(_responder)

        with patch("anise.ingredients.batch.asyncio.sleep", new=AsyncMock()) as sleep:
            _run(batch_parse(["1/2 tsp salt", "1/2 tsp salt", "1/2 tsp salt"], llm=llm, delay_ms=250))

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)
