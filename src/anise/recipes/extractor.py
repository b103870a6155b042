"""
Anise - Recipe extraction.

Cleaned page text in, validated RecipeData out. The one LLM call path with
a retry loop: provider errors and schema failures are retried with
exponential backoff before giving up.
"""

import asyncio
import logging

from anise.config import settings
from anise.errors import LLMError, RecipeExtractionError
from anise.llm.client import StructuredLLM, get_llm
from anise.recipes.models import RecipeData
from anise.recipes.prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt

logger = logging.getLogger(__name__)


async def extract_recipe(
    content: str,
    *,
    llm: StructuredLLM | None = None,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> RecipeData:
    """
    Extract a structured recipe from cleaned page text.

    Waits backoff_seconds, 2x, 4x, ... between attempts.

    Raises:
        RecipeExtractionError: every attempt failed
    """
    if not content or not content.strip():
        raise RecipeExtractionError("No page content to extract a recipe from")

    llm = llm or get_llm()
    attempts = max_attempts if max_attempts is not None else settings.extraction_max_attempts
    backoff = backoff_seconds if backoff_seconds is not None else settings.extraction_backoff_seconds

    last_error: LLMError | None = None
    for attempt in range(1, attempts + 1):
        try:
            result = await llm.generate(
                response_model=RecipeData,
                system_prompt=EXTRACTION_SYSTEM_PROMPT,
                user_prompt=build_extraction_prompt(content),
                name="extract-recipe",
            )
        except LLMError as e:
            last_error = e
            if attempt == attempts:
                break
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(f"Recipe extraction attempt {attempt}/{attempts} failed: {e}; retrying in {delay:.1f}s")
            await asyncio.sleep(delay)
            continue

        recipe = result.output
        logger.info(
            f"Extracted '{recipe.name}': {sum(len(g.items) for g in recipe.ingredients)} ingredients, "
            f"{len(recipe.instructions)} steps"
        )
        return recipe

    raise RecipeExtractionError(
        f"Failed to extract recipe after {attempts} attempts: {last_error}"
    ) from last_error
