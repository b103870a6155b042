"""
Anise - Ingredient Catalog Store.

The persisted set of standardized ingredient names.

Lookups:
1. Exact match on the normalized name (lowercase, trimmed, single-spaced)
2. Fuzzy candidates: any catalog name containing any word of the query
   (ILIKE), intentionally permissive to maximize recall for disambiguation

Names are stored normalized and `ingredients.name` is UNIQUE, so creation
is an upsert: two concurrent creators of the same new name both get the
same row back.
"""

import logging
import re
from collections import defaultdict
from typing import Any

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import MatchFailure, NotFoundError
from anise.ingredients.models import StandardizedIngredient

logger = logging.getLogger(__name__)

TABLE = "ingredients"

# Cap on candidates handed to the disambiguation step
DEFAULT_CANDIDATE_LIMIT = 20

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)


def normalize_name(name: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join(name.lower().split())


def _to_ingredient(row: dict[str, Any]) -> StandardizedIngredient:
    return StandardizedIngredient(id=row["id"], name=row["name"])


class CatalogStore:
    """Catalog queries over an injected database adapter."""

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    # =========================================================================
    # Lookups
    # =========================================================================

    async def find_by_name(self, name: str) -> StandardizedIngredient | None:
        """Exact match on the normalized name."""
        normalized = normalize_name(name)
        if not normalized:
            return None

        result = (
            self.db.table(TABLE).select("id, name").eq("name", normalized).limit(1).execute()
        )
        if not result.data:
            return None
        return _to_ingredient(result.data[0])

    async def find_by_id(self, ingredient_id: int) -> StandardizedIngredient | None:
        result = (
            self.db.table(TABLE).select("id, name").eq("id", ingredient_id).limit(1).execute()
        )
        if not result.data:
            return None
        return _to_ingredient(result.data[0])

    async def find_similar(
        self,
        name: str,
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> list[StandardizedIngredient]:
        """
        Candidates whose name contains any word of `name`.

        "green bell pepper" matches "bell pepper", "green onion", "pepper", ...
        """
        words = list(dict.fromkeys(_WORD_PATTERN.findall(normalize_name(name))))
        if not words:
            return []

        filters = ",".join(f"name.ilike.*{word}*" for word in words)
        result = (
            self.db.table(TABLE)
            .select("id, name")
            .or_(filters)
            .order("name")
            .limit(limit)
            .execute()
        )
        return [_to_ingredient(row) for row in result.data]

    async def list_all(self) -> list[StandardizedIngredient]:
        result = self.db.table(TABLE).select("id, name").order("name").execute()
        return [_to_ingredient(row) for row in result.data]

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, name: str) -> StandardizedIngredient:
        """
        Create (or converge on) the catalog entry for `name`.

        Raises:
            MatchFailure: the write failed or returned no row
        """
        normalized = normalize_name(name)
        if not normalized:
            raise MatchFailure("Cannot create an ingredient with an empty name", name=name)

        try:
            result = (
                self.db.table(TABLE)
                .upsert({"name": normalized}, on_conflict="name")
                .execute()
            )
        except Exception as e:
            raise MatchFailure(f"Failed to create ingredient '{normalized}': {e}", name=normalized) from e

        if not result.data:
            raise MatchFailure(f"Failed to create ingredient '{normalized}'", name=normalized)

        created = _to_ingredient(result.data[0])
        logger.info(f"Catalog entry {created.id} '{created.name}'")
        return created

    async def get_substitutions(self, ingredient_id: int) -> list[str]:
        result = (
            self.db.table(TABLE).select("substitutions").eq("id", ingredient_id).limit(1).execute()
        )
        if not result.data:
            raise NotFoundError(f"Ingredient {ingredient_id} not found")
        return result.data[0].get("substitutions") or []

    async def set_substitutions(self, ingredient_id: int, substitutions: list[str]) -> list[str]:
        """Replace the free-text substitution suggestions for an ingredient."""
        cleaned = [s.strip() for s in substitutions if s and s.strip()]
        result = (
            self.db.table(TABLE)
            .update({"substitutions": cleaned})
            .eq("id", ingredient_id)
            .execute()
        )
        if not result.data:
            raise NotFoundError(f"Ingredient {ingredient_id} not found")
        return cleaned

    # =========================================================================
    # Maintenance
    # =========================================================================

    async def find_duplicate_names(self) -> list[list[StandardizedIngredient]]:
        """
        Groups of rows whose names collide once normalized.

        Only rows written before names were normalized can collide. Reporting
        only; merging duplicates and repointing recipe rows is not implemented.
        """
        groups: dict[str, list[StandardizedIngredient]] = defaultdict(list)
        for ingredient in await self.list_all():
            groups[normalize_name(ingredient.name)].append(ingredient)
        return [sorted(rows, key=lambda r: r.id) for rows in groups.values() if len(rows) > 1]


_catalog: CatalogStore | None = None


def get_catalog() -> CatalogStore:
    """Default CatalogStore bound to the shared Supabase client."""
    global _catalog
    if _catalog is None:
        _catalog = CatalogStore(get_client())
    return _catalog
