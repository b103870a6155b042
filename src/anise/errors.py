"""
Anise - Exception hierarchy.

Pipeline failures carry enough context (raw line, catalog id, phase) to
tell from the message alone which ingredient broke and where.
"""


class AniseError(Exception):
    """Base class for all Anise errors."""


# =============================================================================
# LLM
# =============================================================================


class LLMError(AniseError):
    """The LLM provider call failed."""


class SchemaValidationError(LLMError):
    """The model's structured output did not validate against the schema."""


# =============================================================================
# Ingredient pipeline
# =============================================================================


class ParseFailure(AniseError):
    """A raw ingredient line could not be decomposed into structured fields."""

    def __init__(self, raw_line: str, reason: str | None = None):
        self.raw_line = raw_line
        self.reason = reason
        message = f"Failed to parse ingredient {raw_line!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MatchFailure(AniseError):
    """
    Catalog integrity problem during matching.

    Raised when a matched id no longer resolves to a row, or when a new
    catalog entry could not be written. Always a server-side error.
    """

    def __init__(self, message: str, *, name: str | None = None, ingredient_id: int | None = None):
        self.name = name
        self.ingredient_id = ingredient_id
        super().__init__(message)


class IngredientProcessingError(AniseError):
    """A single ingredient's parse+match pipeline failed, aborting the batch."""

    def __init__(
        self,
        raw_line: str,
        *,
        group_index: int,
        item_index: int,
        phase: str,
        cause: BaseException,
    ):
        self.raw_line = raw_line
        self.group_index = group_index
        self.item_index = item_index
        self.phase = phase
        self.cause = cause
        super().__init__(
            f"Ingredient {raw_line!r} (group {group_index}, item {item_index}) "
            f"failed during {phase}: {cause}"
        )


# =============================================================================
# Recipes
# =============================================================================


class ScrapeError(AniseError):
    """Fetching or cleaning a recipe page failed."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class RecipeExtractionError(AniseError):
    """Structured recipe extraction failed after all retries."""


# =============================================================================
# Persistence
# =============================================================================


class AuditLogError(AniseError):
    """A job or step record could not be created."""


class NotFoundError(AniseError):
    """A requested record does not exist."""


class PermissionDeniedError(AniseError):
    """The caller does not own the record it tried to modify."""
