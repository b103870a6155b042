"""
Anise - Observability.

Provides:
- Token usage and cost accounting (UsageStats)
- Prompt logging for local debugging
"""

from anise.observability.usage import (
    MODEL_PRICING,
    ModelPricing,
    UsageStats,
    get_pricing,
)

__all__ = [
    "MODEL_PRICING",
    "ModelPricing",
    "UsageStats",
    "get_pricing",
]
