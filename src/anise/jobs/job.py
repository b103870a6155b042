"""
Anise - Job runner.

A job is one top-level pipeline invocation. It is recorded before it runs
and finalized once, with accumulated usage, whether it succeeds or fails.
Jobs are not resumable; the record is an audit trail.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from anise.jobs.audit import AuditLog, get_audit_log
from anise.jobs.context import JobContext, job_scope
from anise.jobs.models import JobMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class JobResult(Generic[T]):
    """Return value of run_job."""

    result: T
    job_id: int
    metadata: JobMetadata


async def run_job(
    name: str,
    fn: Callable[..., Awaitable[T] | T],
    *args: Any,
    audit: AuditLog | None = None,
    **kwargs: Any,
) -> JobResult[T]:
    """
    Run `fn(*args, **kwargs)` as job `name`.

    Steps started anywhere inside `fn` attach to this job through the
    ambient job context. Exceptions from `fn` propagate unchanged after the
    job record is marked failed.

    Example:
        outcome = await run_job("add-recipe", _add_recipe, url)
        print(outcome.job_id, outcome.metadata.usage.total_cost)
    """
    audit = audit or get_audit_log()
    job_id = audit.create_job(name)
    context = JobContext(job_id=job_id, name=name, metadata=JobMetadata(), audit=audit)

    logger.info(f"Job {job_id} '{name}' started")

    try:
        with job_scope(context):
            result = fn(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
    except BaseException as e:
        logger.error(f"Job {job_id} '{name}' failed: {e}")
        audit.fail_job(job_id, context.metadata, e)
        raise

    audit.complete_job(job_id, context.metadata)
    logger.info(
        f"Job {job_id} '{name}' complete "
        f"(tokens={context.metadata.usage.total_tokens}, cost=${context.metadata.usage.total_cost:.6f})"
    )

    return JobResult(result=result, job_id=job_id, metadata=context.metadata)
