"""
Tests for the job/step audit log and ambient context.
"""

import asyncio

import pytest
from pydantic import TypeAdapter

from anise.errors import AuditLogError
from anise.jobs import (
    LlmStepMetadata,
    PlainStepMetadata,
    StepMetadata,
    get_job_context,
    get_step_context,
    get_step_metadata,
    has_job_context,
    llm_step,
    record_usage,
    run_job,
    set_job_metadata,
    set_step_metadata,
    step,
)
from anise.observability.usage import UsageStats


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def _usage(tokens: int) -> UsageStats:
    return UsageStats.from_tokens("gpt-4.1-mini", input_tokens=tokens)


class TestRunJob:
    """Test job records."""

    def test_records_success(self, db, audit):
        async def work(x):
            return x * 2

        outcome = _run(run_job("double", work, 21, audit=audit))

        assert outcome.result == 42
        job = db.rows("jobs")[0]
        assert job["id"] == outcome.job_id
        assert job["workflow_name"] == "double"
        assert job["status"] == "complete"
        assert job["completed_at"] is not None

    def test_sync_function(self, audit):
        outcome = _run(run_job("sync", lambda: "ok", audit=audit))
        assert outcome.result == "ok"

    def test_records_failure_and_reraises(self, db, audit):
        async def boom():
            raise ValueError("nope")

        with pytest.raises(ValueError, match="nope"):
            _run(run_job("boom", boom, audit=audit))

        job = db.rows("jobs")[0]
        assert job["status"] == "failed"
        assert job["error"]["type"] == "ValueError"
        assert job["error"]["message"] == "nope"

    def test_context_only_inside_job(self, audit):
        seen = {}

        async def work():
            seen["name"] = get_job_context().name

        _run(run_job("ctx", work, audit=audit))

        assert seen["name"] == "ctx"
        assert not has_job_context()

    def test_create_failure_raises_audit_error(self, db, audit):
        db.fail("jobs", "insert")
        with pytest.raises(AuditLogError):
            _run(run_job("x", lambda: None, audit=audit))

    def test_finalize_failure_does_not_mask_result(self, db, audit):
        db.fail("jobs", "update")
        outcome = _run(run_job("x", lambda: 1, audit=audit))
        assert outcome.result == 1

    def test_extra_metadata_persisted(self, db, audit):
        async def work():
            set_job_metadata(source_url="https://example.com")

        _run(run_job("meta", work, audit=audit))
        assert db.rows("jobs")[0]["metadata"]["extra"] == {"source_url": "https://example.com"}


class TestStep:
    """Test step records."""

    def test_step_requires_job(self):
        with pytest.raises(RuntimeError, match="job"):
            _run(step("orphan", lambda: None))

    def test_records_input_and_output(self, db, audit):
        async def work():
            return await step("add-one", lambda n: n + 1, 1)

        _run(run_job("j", work, audit=audit))

        [record] = db.rows("steps")
        assert record["name"] == "add-one"
        assert record["input"] == 1
        assert record["output"] == 2
        assert record["metadata"]["kind"] == "plain"

    def test_step_error_recorded_and_propagated(self, db, audit):
        def fail(_):
            raise KeyError("missing")

        async def work():
            await step("lookup", fail, "x")

        with pytest.raises(KeyError):
            _run(run_job("j", work, audit=audit))

        record = db.rows("steps")[0]
        assert record["error"]["type"] == "KeyError"
        assert db.rows("jobs")[0]["status"] == "failed"

    def test_step_context_and_metadata(self, db, audit):
        async def inner():
            set_step_metadata(note="hello")
            return get_step_context().name

        async def work():
            return await step("inner", inner)

        outcome = _run(run_job("j", work, audit=audit))

        assert outcome.result == "inner"
        assert db.rows("steps")[0]["metadata"]["extra"] == {"note": "hello"}

    def test_nested_step_links_parent(self, audit):
        async def child():
            return get_step_context().parent.name

        async def parent():
            return await step("child", child)

        async def work():
            return await step("parent", parent)

        assert _run(run_job("j", work, audit=audit)).result == "parent"


class TestUsageRecording:
    """Test usage flowing into job and step metadata."""

    def test_usage_reaches_step_parents_and_job(self, db, audit):
        async def call_model():
            record_usage(_usage(100), "gpt-4.1-mini")

        async def outer():
            await llm_step("inner-llm", call_model)

        async def work():
            await step("outer", outer)

        outcome = _run(run_job("j", work, audit=audit))

        assert outcome.metadata.usage.input_tokens == 100
        outer_record, inner_record = db.rows("steps")
        assert inner_record["metadata"]["kind"] == "llm"
        assert inner_record["metadata"]["llm_calls"] == 1
        assert inner_record["metadata"]["model"] == "gpt-4.1-mini"
        assert inner_record["metadata"]["usage"]["input_tokens"] == 100
        assert outer_record["metadata"]["usage"]["input_tokens"] == 100

    def test_record_usage_outside_job_is_noop(self):
        record_usage(_usage(10))

    def test_concurrent_steps_keep_their_own_metadata(self, audit):
        async def call_model(tokens):
            await asyncio.sleep(0.01 * (5 - tokens))
            record_usage(_usage(tokens))
            await asyncio.sleep(0)
            metadata = get_step_metadata()
            assert isinstance(metadata, LlmStepMetadata)
            return metadata.usage.input_tokens

        async def work():
            return await asyncio.gather(
                *(llm_step(f"call-{n}", call_model, n) for n in range(1, 5))
            )

        outcome = _run(run_job("j", work, audit=audit))

        assert outcome.result == [1, 2, 3, 4]
        assert outcome.metadata.usage.input_tokens == 10


class TestReadBack:
    """Test reading stored job and step records."""

    def test_step_metadata_round_trips_by_kind(self, audit):
        async def call_model():
            record_usage(_usage(40), "gpt-4.1-mini")

        async def work():
            await step("plain", lambda: None)
            await llm_step("model-call", call_model)

        outcome = _run(run_job("j", work, audit=audit))

        job = audit.get_job(outcome.job_id)
        assert job["status"] == "complete"

        records = audit.get_steps(outcome.job_id)
        assert [r["name"] for r in records] == ["plain", "model-call"]

        adapter = TypeAdapter(StepMetadata)
        plain, llm = (adapter.validate_python(r["metadata"]) for r in records)
        assert isinstance(plain, PlainStepMetadata)
        assert isinstance(llm, LlmStepMetadata)
        assert llm.llm_calls == 1
        assert llm.usage.input_tokens == 40

    def test_missing_job(self, audit):
        assert audit.get_job(999) is None
        assert audit.get_steps(999) == []
