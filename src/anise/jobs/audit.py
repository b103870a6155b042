"""
Audit log persistence for jobs and steps.

Single-owner module: every write to the `jobs` and `steps` tables goes
through AuditLog. Creating a record must succeed (the id is needed to link
steps to their job), so creation failures raise AuditLogError. Finalizing
a record is best effort: a failure is logged and never replaces the
wrapped operation's own result or exception.
"""

import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from anise.db.adapter import DatabaseAdapter
from anise.db.client import get_client
from anise.errors import AuditLogError

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    """Get current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


def to_json(value: Any) -> Any:
    """Convert step inputs/outputs (models, dataclasses, Decimals) to JSON-safe data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return to_jsonable_python(value, fallback=repr)


def error_payload(error: BaseException) -> dict[str, Any]:
    """Serialize an exception for the `error` column."""
    return {
        "type": type(error).__name__,
        "message": str(error),
        "stack": "".join(traceback.format_exception(error)),
    }


class AuditLog:
    """Writes job and step records."""

    def __init__(self, db: DatabaseAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def create_job(self, workflow_name: str) -> int:
        """Insert a running job. Returns its id."""
        try:
            result = (
                self.db.table("jobs")
                .insert({"workflow_name": workflow_name, "status": "running"})
                .execute()
            )
        except Exception as e:
            raise AuditLogError(f"Failed to create job '{workflow_name}': {e}") from e

        if not result.data:
            raise AuditLogError(f"Failed to create job '{workflow_name}'")
        return result.data[0]["id"]

    def complete_job(self, job_id: int, metadata: BaseModel) -> None:
        """Mark job as complete with final metadata."""
        self._update(
            "jobs",
            job_id,
            {
                "status": "complete",
                "metadata": to_json(metadata),
                "completed_at": _utc_now(),
            },
        )

    def fail_job(self, job_id: int, metadata: BaseModel, error: BaseException) -> None:
        """Mark job as failed with the error and final metadata."""
        self._update(
            "jobs",
            job_id,
            {
                "status": "failed",
                "metadata": to_json(metadata),
                "error": error_payload(error),
                "completed_at": _utc_now(),
            },
        )

    def get_job(self, job_id: int) -> dict[str, Any] | None:
        result = self.db.table("jobs").select("*").eq("id", job_id).maybe_single().execute()
        if result is None:
            return None
        return result.data

    def get_steps(self, job_id: int) -> list[dict[str, Any]]:
        """All steps of a job in creation order."""
        result = self.db.table("steps").select("*").eq("job_id", job_id).order("id").execute()
        return result.data

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def create_step(self, job_id: int, name: str, step_input: Any, metadata: BaseModel) -> int:
        """Insert a step record before the step runs. Returns its id."""
        try:
            result = (
                self.db.table("steps")
                .insert(
                    {
                        "job_id": job_id,
                        "name": name,
                        "input": to_json(step_input),
                        "metadata": to_json(metadata),
                    }
                )
                .execute()
            )
        except Exception as e:
            raise AuditLogError(f"Failed to create step '{name}' for job {job_id}: {e}") from e

        if not result.data:
            raise AuditLogError(f"Failed to create step '{name}' for job {job_id}")
        return result.data[0]["id"]

    def complete_step(self, step_id: int, output: Any, metadata: BaseModel) -> None:
        self._update(
            "steps",
            step_id,
            {
                "output": to_json(output),
                "metadata": to_json(metadata),
                "completed_at": _utc_now(),
            },
        )

    def fail_step(self, step_id: int, error: BaseException, metadata: BaseModel) -> None:
        self._update(
            "steps",
            step_id,
            {
                "error": error_payload(error),
                "metadata": to_json(metadata),
                "completed_at": _utc_now(),
            },
        )

    def _update(self, table: str, record_id: int, values: dict[str, Any]) -> None:
        try:
            self.db.table(table).update(values).eq("id", record_id).execute()
        except Exception as e:
            logger.error(f"Failed to finalize {table} record {record_id}: {e}")


_audit_log: AuditLog | None = None


def get_audit_log() -> AuditLog:
    """Default AuditLog bound to the shared Supabase client."""
    global _audit_log
    if _audit_log is None:
        _audit_log = AuditLog(get_client())
    return _audit_log
