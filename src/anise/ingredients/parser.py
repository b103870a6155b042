"""Ingredient Parser - decompose one raw ingredient line into structured fields.

The model does the decomposition; this module enforces the parsing policy
on what comes back:
- quantity keeps its original text ("1/2", "2-3"), never an empty string
- unit is singular and canonical ("cup", "tbsp"), or None
- name is trimmed, lowercased, single-spaced
- note is None when there is nothing to say

Output that fails validation is not re-asked: one call, then ParseFailure.
"""

import logging
from dataclasses import dataclass

from anise.errors import ParseFailure, SchemaValidationError
from anise.ingredients.models import ParsedIngredient
from anise.ingredients.prompts import PARSING_SYSTEM_PROMPT, build_parse_prompt
from anise.ingredients.units import normalize_unit
from anise.llm.client import StructuredLLM, get_llm
from anise.observability.usage import UsageStats

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Parsed ingredient plus the usage consumed producing it."""

    parsed: ParsedIngredient
    usage: UsageStats


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def normalize_parsed(parsed: ParsedIngredient) -> ParsedIngredient:
    """Apply the deterministic parsing policy to a model response."""
    name = " ".join((parsed.name or "").lower().split())
    return ParsedIngredient(
        quantity=_blank_to_none(parsed.quantity),
        unit=normalize_unit(parsed.unit),
        name=name,
        note=_blank_to_none(parsed.note),
    )


async def parse_ingredient(raw_line: str, *, llm: StructuredLLM | None = None) -> ParseResult:
    """
    Parse one raw ingredient line.

    Args:
        raw_line: e.g. "2 cups green bell peppers, diced"
        llm: structured-output capability (defaults to the shared client)

    Returns:
        ParseResult, e.g. parsed={quantity: "2", unit: "cup",
        name: "green bell pepper", note: "diced"}

    Raises:
        ParseFailure: empty input, or the model output failed validation
            or carried no ingredient name. No partial result is returned.
    """
    if not raw_line or not raw_line.strip():
        raise ParseFailure(raw_line, "empty ingredient line")

    llm = llm or get_llm()

    try:
        result = await llm.generate(
            response_model=ParsedIngredient,
            system_prompt=PARSING_SYSTEM_PROMPT,
            user_prompt=build_parse_prompt(raw_line.strip()),
            name="parse-ingredient",
            max_retries=0,
        )
    except SchemaValidationError as e:
        raise ParseFailure(raw_line, str(e)) from e

    parsed = normalize_parsed(result.output)
    if not parsed.name:
        raise ParseFailure(raw_line, "model returned an empty ingredient name")

    logger.debug(f"Parsed {raw_line!r} -> {parsed.model_dump()}")
    return ParseResult(parsed=parsed, usage=result.usage)
