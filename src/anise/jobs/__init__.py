"""
Anise - Job/Step Audit Log.

run_job() wraps a top-level pipeline invocation; step()/llm_step() wrap
its named sub-operations. Both are durably recorded with input, output or
error, and metadata (primarily token usage).
"""

from anise.jobs.audit import AuditLog, get_audit_log
from anise.jobs.context import (
    get_job_context,
    get_step_context,
    get_step_metadata,
    has_job_context,
    has_step_context,
    record_usage,
    require_job_context,
    require_step_context,
    set_job_metadata,
    set_step_metadata,
)
from anise.jobs.job import JobResult, run_job
from anise.jobs.models import JobMetadata, LlmStepMetadata, PlainStepMetadata, StepMetadata
from anise.jobs.step import llm_step, step

__all__ = [
    "AuditLog",
    "JobMetadata",
    "JobResult",
    "LlmStepMetadata",
    "PlainStepMetadata",
    "StepMetadata",
    "get_audit_log",
    "get_job_context",
    "get_step_context",
    "get_step_metadata",
    "has_job_context",
    "has_step_context",
    "llm_step",
    "record_usage",
    "require_job_context",
    "require_step_context",
    "run_job",
    "set_job_metadata",
    "set_step_metadata",
    "step",
]
