"""
Anise - Job/Step Metadata Models.

Metadata is typed per step kind. `extra` holds any additional keys a step
wants to record without a schema change.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from anise.observability.usage import UsageStats


class JobMetadata(BaseModel):
    """Metadata stored on a job record at completion."""

    usage: UsageStats = Field(default_factory=UsageStats)
    extra: dict[str, Any] = Field(default_factory=dict)


class PlainStepMetadata(BaseModel):
    """
    Metadata for an ordinary step.

    `usage` still accumulates LLM calls made by nested steps, so a
    process-ingredient step reports what its parse and match cost.
    """

    kind: Literal["plain"] = "plain"
    usage: UsageStats = Field(default_factory=UsageStats)
    extra: dict[str, Any] = Field(default_factory=dict)


class LlmStepMetadata(BaseModel):
    """Metadata for a step that wraps a direct model call."""

    kind: Literal["llm"] = "llm"
    usage: UsageStats = Field(default_factory=UsageStats)
    model: str | None = None
    llm_calls: int = 0
    extra: dict[str, Any] = Field(default_factory=dict)


StepMetadata = Annotated[PlainStepMetadata | LlmStepMetadata, Field(discriminator="kind")]
