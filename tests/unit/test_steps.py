"""Tests for the durable step boundary."""

import asyncio

import pytest

from nodeflow.errors import MissingConfiguration, NonRetriableEffectError, RetriableEffectError
from nodeflow.persistence import InMemoryWorkflowRepository, SQLiteWorkflowRepository
from nodeflow.persistence.models import STEP_COMPLETED, STEP_FAILED
from nodeflow.steps import StepRunner


class Counter:
    def __init__(self, result="ok"):
        self.calls = 0
        self.result = result

    async def __call__(self, *args):
        self.calls += 1
        return self.result


@pytest.mark.asyncio
async def test_step_result_is_memoized_within_run():
    repo = InMemoryWorkflowRepository()
    step = StepRunner("run-1", repo)
    effect = Counter({"value": 1})

    first = await step.run("fetch", effect)
    second = await step.run("fetch", effect)

    assert first == second == {"value": 1}
    assert effect.calls == 1


@pytest.mark.asyncio
async def test_retried_attempt_skips_completed_steps():
    repo = InMemoryWorkflowRepository()
    effect = Counter("text")

    await StepRunner("run-1", repo).run("generate", effect)
    replayed = await StepRunner("run-1", repo).run("generate", effect)

    assert replayed == "text"
    assert effect.calls == 1


@pytest.mark.asyncio
async def test_different_runs_do_not_share_results():
    repo = InMemoryWorkflowRepository()
    effect = Counter()

    await StepRunner("run-1", repo).run("generate", effect)
    await StepRunner("run-2", repo).run("generate", effect)

    assert effect.calls == 2


@pytest.mark.asyncio
async def test_sync_functions_are_supported():
    repo = InMemoryWorkflowRepository()
    result = await StepRunner("run-1", repo).run("add", lambda a, b: a + b, 2, 3)
    assert result == 5
    record = await repo.get_step("run-1", "add")
    assert record.status == STEP_COMPLETED
    assert record.output == 5


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_retriable_and_is_not_memoized():
    repo = InMemoryWorkflowRepository()
    step = StepRunner("run-1", repo)
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise ConnectionError("reset by peer")
        return "recovered"

    with pytest.raises(RetriableEffectError) as exc_info:
        await step.run("flaky", flaky)
    assert isinstance(exc_info.value.__cause__, ConnectionError)

    record = await repo.get_step("run-1", "flaky")
    assert record.status == STEP_FAILED
    assert "reset by peer" in record.error

    assert await step.run("flaky", flaky) == "recovered"
    record = await repo.get_step("run-1", "flaky")
    assert record.status == STEP_COMPLETED
    assert record.attempts == 2


@pytest.mark.asyncio
async def test_typed_errors_propagate_unchanged():
    repo = InMemoryWorkflowRepository()

    async def broken():
        raise MissingConfiguration("endpoint")

    with pytest.raises(MissingConfiguration):
        await StepRunner("run-1", repo).run("broken", broken)


@pytest.mark.asyncio
async def test_concurrent_calls_for_same_key_run_effect_once():
    repo = InMemoryWorkflowRepository()
    step = StepRunner("run-1", repo)
    calls = []

    async def slow():
        calls.append(1)
        await asyncio.sleep(0.01)
        return "done"

    results = await asyncio.gather(step.run("slow", slow), step.run("slow", slow))

    assert results == ["done", "done"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unserializable_output_fails_without_retry(tmp_path):
    repo = SQLiteWorkflowRepository(tmp_path / "ledger.db")
    await repo.create_run("run-1", "wf")
    step = StepRunner("run-1", repo)
    effect = Counter(object())

    with pytest.raises(NonRetriableEffectError, match="cannot store"):
        await step.run("opaque", effect)

    record = await repo.get_step("run-1", "opaque")
    assert record.status == STEP_FAILED
    assert effect.calls == 1
