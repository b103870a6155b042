"""
Anise - Ingredient normalization.

Raw ingredient lines in, catalog-linked structured ingredients out:
parser (LLM decomposition), matcher (catalog resolution), pipeline
(bounded, order-preserving batch processing of a recipe's groups).
"""

from anise.ingredients.catalog import CatalogStore, get_catalog, normalize_name
from anise.ingredients.matcher import IngredientMatcher
from anise.ingredients.models import (
    IngredientGroup,
    IngredientMatch,
    MappedIngredient,
    MappedIngredientGroup,
    ParsedIngredient,
    StandardizedIngredient,
)
from anise.ingredients.parser import ParseResult, parse_ingredient
from anise.ingredients.pipeline import IngredientProcessor
from anise.ingredients.units import normalize_unit

__all__ = [
    "CatalogStore",
    "IngredientGroup",
    "IngredientMatch",
    "IngredientMatcher",
    "IngredientProcessor",
    "MappedIngredient",
    "MappedIngredientGroup",
    "ParseResult",
    "ParsedIngredient",
    "StandardizedIngredient",
    "get_catalog",
    "normalize_name",
    "normalize_unit",
    "parse_ingredient",
]
