"""
Anise - Step runner.

A step is one named sub-operation inside a job. Its input is recorded
before it runs; its output or error and its metadata are recorded after.
Inside the step, `get_step_metadata()` / `record_usage()` reach the step's
own metadata without it being passed around.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from anise.jobs.context import (
    StepContext,
    get_step_context,
    require_job_context,
    step_scope,
)
from anise.jobs.models import LlmStepMetadata, PlainStepMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _step_input(args: tuple, kwargs: dict) -> Any:
    """Single positional arguments are stored bare, anything else as a list/dict."""
    if not kwargs:
        return args[0] if len(args) == 1 else list(args)
    return {"args": list(args), "kwargs": kwargs}


async def step(
    name: str,
    fn: Callable[..., Awaitable[T] | T],
    *args: Any,
    metadata: PlainStepMetadata | LlmStepMetadata | None = None,
    **kwargs: Any,
) -> T:
    """
    Run `fn(*args, **kwargs)` as step `name` of the current job.

    Must be called inside run_job. Exceptions propagate unchanged after the
    step record is finalized with the error payload.
    """
    job = require_job_context()
    metadata = metadata if metadata is not None else PlainStepMetadata()

    step_id = job.audit.create_step(job.job_id, name, _step_input(args, kwargs), metadata)
    context = StepContext(
        step_id=step_id,
        job_id=job.job_id,
        name=name,
        metadata=metadata,
        parent=get_step_context(),
    )

    try:
        with step_scope(context):
            result = fn(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
    except BaseException as e:
        logger.debug(f"Step {step_id} '{name}' failed: {e}")
        job.audit.fail_step(step_id, e, metadata)
        raise

    job.audit.complete_step(step_id, result, metadata)
    return result


async def llm_step(
    name: str,
    fn: Callable[..., Awaitable[T] | T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run a step whose metadata tracks model usage."""
    return await step(name, fn, *args, metadata=LlmStepMetadata(), **kwargs)
