"""
Anise - Usage Accounting.

Token counts and USD cost for LLM calls.

Costs are priced exactly once, when a raw provider response is turned into
a UsageStats. After that, stats are only ever summed. Costs are Decimals so
that summing is exact, which keeps merging associative and commutative.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer

logger = logging.getLogger(__name__)

ONE_MILLION = Decimal(1_000_000)

DEFAULT_PRICING_MODEL = "gpt-4.1"


# =============================================================================
# Pricing
# =============================================================================


@dataclass(frozen=True)
class ModelPricing:
    """USD per 1M tokens."""

    input: Decimal
    output: Decimal
    cache_write: Decimal
    cache_read: Decimal


def _pricing(input: str, output: str, cache_write: str, cache_read: str) -> ModelPricing:
    return ModelPricing(Decimal(input), Decimal(output), Decimal(cache_write), Decimal(cache_read))


# OpenAI bills cache writes at the normal input rate.
MODEL_PRICING: dict[str, ModelPricing] = {
    "gpt-4.1": _pricing("2.00", "8.00", "2.00", "0.50"),
    "gpt-4.1-mini": _pricing("0.40", "1.60", "0.40", "0.10"),
    "gpt-4.1-nano": _pricing("0.10", "0.40", "0.10", "0.025"),
    "gpt-4o": _pricing("2.50", "10.00", "2.50", "1.25"),
    "gpt-4o-mini": _pricing("0.15", "0.60", "0.15", "0.075"),
    "gpt-5": _pricing("1.25", "10.00", "1.25", "0.125"),
    "gpt-5-mini": _pricing("0.25", "2.00", "0.25", "0.025"),
}


def get_pricing(model: str) -> ModelPricing:
    """
    Look up pricing for a model name.

    Dated snapshots ("gpt-4.1-mini-2025-04-14") resolve to the longest
    table key they start with. Unknown models fall back to the default.
    """
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]

    prefixes = [key for key in MODEL_PRICING if model.startswith(key)]
    if prefixes:
        return MODEL_PRICING[max(prefixes, key=len)]

    logger.warning(f"No pricing for model '{model}', using {DEFAULT_PRICING_MODEL}")
    return MODEL_PRICING[DEFAULT_PRICING_MODEL]


# =============================================================================
# Usage Stats
# =============================================================================


class UsageStats(BaseModel):
    """
    Token usage and cost of one LLM call, or the sum of many.

    `input_tokens` counts uncached prompt tokens only; cache writes and
    cache reads are tracked (and priced) separately.
    """

    model_config = ConfigDict(validate_assignment=True)

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    cache_creation_input_tokens: int = Field(default=0, ge=0)
    cache_read_input_tokens: int = Field(default=0, ge=0)
    input_cost: Decimal = Field(default=Decimal(0), ge=0)
    output_cost: Decimal = Field(default=Decimal(0), ge=0)
    total_cost: Decimal = Field(default=Decimal(0), ge=0)
    estimated_cost: Decimal = Field(default=Decimal(0), ge=0)

    @field_serializer(
        "input_cost", "output_cost", "total_cost", "estimated_cost", when_used="json"
    )
    def _cost_as_float(self, value: Decimal) -> float:
        return float(value)

    @classmethod
    def from_tokens(
        cls,
        model: str,
        *,
        input_tokens: int = 0,
        output_tokens: int = 0,
        cache_creation_input_tokens: int = 0,
        cache_read_input_tokens: int = 0,
    ) -> "UsageStats":
        """Price a single raw call."""
        pricing = get_pricing(model)

        input_cost = (
            Decimal(input_tokens) * pricing.input
            + Decimal(cache_creation_input_tokens) * pricing.cache_write
            + Decimal(cache_read_input_tokens) * pricing.cache_read
        ) / ONE_MILLION
        output_cost = Decimal(output_tokens) * pricing.output / ONE_MILLION
        total_cost = input_cost + output_cost

        return cls(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=(
                input_tokens
                + output_tokens
                + cache_creation_input_tokens
                + cache_read_input_tokens
            ),
            cache_creation_input_tokens=cache_creation_input_tokens,
            cache_read_input_tokens=cache_read_input_tokens,
            input_cost=input_cost,
            output_cost=output_cost,
            total_cost=total_cost,
            estimated_cost=total_cost,
        )

    @classmethod
    def from_completion(cls, model: str, usage: Any) -> "UsageStats":
        """
        Build stats from an OpenAI `CompletionUsage` block.

        OpenAI reports cached tokens inside `prompt_tokens`; they are split
        out here so they are priced at the cache-read rate.
        """
        if usage is None:
            return cls()

        prompt_tokens = getattr(usage, "prompt_tokens", 0) or 0
        completion_tokens = getattr(usage, "completion_tokens", 0) or 0

        details = getattr(usage, "prompt_tokens_details", None)
        cache_read = (getattr(details, "cached_tokens", 0) or 0) if details else 0
        cache_creation = getattr(usage, "cache_creation_input_tokens", 0) or 0

        return cls.from_tokens(
            model,
            input_tokens=max(prompt_tokens - cache_read - cache_creation, 0),
            output_tokens=completion_tokens,
            cache_creation_input_tokens=cache_creation,
            cache_read_input_tokens=cache_read,
        )

    def merge(self, other: "UsageStats") -> "UsageStats":
        """Return a new UsageStats holding the field-wise sum."""
        return UsageStats(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in UsageStats.model_fields
            }
        )

    def add(self, other: "UsageStats") -> "UsageStats":
        """Accumulate `other` into this instance in place."""
        for name in UsageStats.model_fields:
            setattr(self, name, getattr(self, name) + getattr(other, name))
        return self

    def __add__(self, other: "UsageStats") -> "UsageStats":
        return self.merge(other)

    @classmethod
    def total(cls, stats: "list[UsageStats]") -> "UsageStats":
        """Sum any number of stats."""
        result = cls()
        for item in stats:
            result.add(item)
        return result
