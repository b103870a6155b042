"""
Anise - Job/Step Context.

Uses context variables so code running inside a job or step can reach
"its" audit record (to record usage, attach metadata) without threading a
context object through every function signature.

asyncio copies the current context into each new task, so steps started
concurrently under the same job each see their own step context, while
all of them share the job's.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from anise.jobs.models import JobMetadata, LlmStepMetadata, PlainStepMetadata
from anise.observability.usage import UsageStats

if TYPE_CHECKING:
    from anise.jobs.audit import AuditLog


@dataclass
class JobContext:
    """Ambient state for one running job."""

    job_id: int
    name: str
    metadata: JobMetadata
    audit: "AuditLog"


@dataclass
class StepContext:
    """Ambient state for one running step."""

    step_id: int
    job_id: int
    name: str
    metadata: PlainStepMetadata | LlmStepMetadata
    parent: Optional["StepContext"] = None


_job_context: ContextVar[JobContext | None] = ContextVar("job_context", default=None)
_step_context: ContextVar[StepContext | None] = ContextVar("step_context", default=None)


# =============================================================================
# Scopes
# =============================================================================


@contextmanager
def job_scope(context: JobContext) -> Iterator[JobContext]:
    """Make `context` the current job for the enclosed block."""
    token = _job_context.set(context)
    try:
        yield context
    finally:
        _job_context.reset(token)


@contextmanager
def step_scope(context: StepContext) -> Iterator[StepContext]:
    """Make `context` the current step for the enclosed block."""
    token = _step_context.set(context)
    try:
        yield context
    finally:
        _step_context.reset(token)


# =============================================================================
# Job accessors
# =============================================================================


def get_job_context() -> JobContext | None:
    return _job_context.get()


def has_job_context() -> bool:
    return _job_context.get() is not None


def require_job_context() -> JobContext:
    context = _job_context.get()
    if context is None:
        raise RuntimeError("No job context available. This function must be called within a job.")
    return context


def set_job_metadata(**updates: Any) -> None:
    """Merge free-form keys into the current job's metadata."""
    require_job_context().metadata.extra.update(updates)


# =============================================================================
# Step accessors
# =============================================================================


def get_step_context() -> StepContext | None:
    return _step_context.get()


def has_step_context() -> bool:
    return _step_context.get() is not None


def require_step_context() -> StepContext:
    context = _step_context.get()
    if context is None:
        raise RuntimeError("No step context available. This function must be called within a step.")
    return context


def get_step_metadata() -> PlainStepMetadata | LlmStepMetadata:
    return require_step_context().metadata


def set_step_metadata(**updates: Any) -> None:
    """Merge free-form keys into the current step's metadata."""
    require_step_context().metadata.extra.update(updates)


# =============================================================================
# Usage
# =============================================================================


def record_usage(usage: UsageStats, model: str | None = None) -> None:
    """
    Add one LLM call's usage to the current job and every enclosing step.

    A no-op outside any job, so services stay callable from scripts.
    """
    step = _step_context.get()
    if step is not None and isinstance(step.metadata, LlmStepMetadata):
        step.metadata.llm_calls += 1
        if model:
            step.metadata.model = model

    while step is not None:
        step.metadata.usage.add(usage)
        step = step.parent

    job = _job_context.get()
    if job is not None:
        job.metadata.usage.add(usage)
