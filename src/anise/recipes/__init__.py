"""
Anise - Recipes.

Import from URL (scrape, extract, normalize ingredients, save), recipe
reads, and the ingredient backfill for rows imported before normalization.
"""

from anise.recipes.backfill import BackfillReport, IngredientBackfill, backfill_ingredients
from anise.recipes.extractor import extract_recipe
from anise.recipes.models import MappedRecipe, RecipeData, RecipeDetail, RecipeSummary, SavedRecipe
from anise.recipes.scraper import clean_html, fetch_page_text
from anise.recipes.store import RecipeStore, get_recipe_store
from anise.recipes.workflow import RecipeImporter, add_recipe_by_url

__all__ = [
    "BackfillReport",
    "IngredientBackfill",
    "MappedRecipe",
    "RecipeData",
    "RecipeDetail",
    "RecipeImporter",
    "RecipeStore",
    "RecipeSummary",
    "SavedRecipe",
    "add_recipe_by_url",
    "backfill_ingredients",
    "clean_html",
    "extract_recipe",
    "fetch_page_text",
    "get_recipe_store",
]
