"""Repository contract tests run against every local backend."""

import pytest

import nodeflow.persistence as persistence
from nodeflow.config import NodeflowConfig
from nodeflow.persistence import (
    InMemoryWorkflowRepository,
    SQLiteWorkflowRepository,
    get_repository,
)
from nodeflow.persistence.models import (
    RUN_CANCELLED,
    RUN_COMPLETED,
    RUN_FAILED,
    RUN_IN_PROGRESS,
    STEP_COMPLETED,
    STEP_FAILED,
    STEP_PENDING,
)


@pytest.fixture(params=["inmemory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteWorkflowRepository(tmp_path / "runs.db")
    return InMemoryWorkflowRepository()


@pytest.mark.asyncio
async def test_run_lifecycle(repo):
    await repo.create_run("r1", "wf", {"name": "Sam"})
    run = await repo.get_run("r1")
    assert run.status == RUN_IN_PROGRESS
    assert run.initial_data == {"name": "Sam"}
    assert run.attempts == 0

    assert await repo.record_attempt("r1") == 1
    assert await repo.record_attempt("r1") == 2

    await repo.mark_run_finished("r1", RUN_COMPLETED, result={"out": 1})
    run = await repo.get_run("r1")
    assert run.status == RUN_COMPLETED
    assert run.result == {"out": 1}
    assert run.attempts == 2


@pytest.mark.asyncio
async def test_create_run_is_idempotent(repo):
    await repo.create_run("r1", "wf", {"a": 1})
    await repo.record_attempt("r1")
    await repo.create_run("r1", "wf", {"a": 2})

    run = await repo.get_run("r1")
    assert run.initial_data == {"a": 1}
    assert run.attempts == 1
    assert len(await repo.list_runs()) == 1


@pytest.mark.asyncio
async def test_failed_run_keeps_error(repo):
    await repo.create_run("r1", "wf")
    await repo.mark_run_finished("r1", RUN_FAILED, error="boom")
    run = await repo.get_run("r1")
    assert run.status == RUN_FAILED
    assert run.error == "boom"
    assert run.result is None


@pytest.mark.asyncio
async def test_cancel_only_in_progress_runs(repo):
    await repo.create_run("r1", "wf")
    assert await repo.cancel_run("r1") is True
    assert (await repo.get_run("r1")).status == RUN_CANCELLED
    assert await repo.cancel_run("r1") is False
    assert await repo.cancel_run("missing") is False


@pytest.mark.asyncio
async def test_missing_run(repo):
    assert await repo.get_run("missing") is None
    assert await repo.list_runs() == []


@pytest.mark.asyncio
async def test_step_completion_is_recorded_with_output(repo):
    await repo.create_run("r1", "wf")
    await repo.mark_step_started("r1", "n1:http-request")
    step = await repo.get_step("r1", "n1:http-request")
    assert step.status == STEP_PENDING
    assert step.attempts == 1

    await repo.mark_step_completed(
        "r1", "n1:http-request", status=STEP_COMPLETED, output={"status": 200}
    )
    step = await repo.get_step("r1", "n1:http-request")
    assert step.status == STEP_COMPLETED
    assert step.output == {"status": 200}
    assert step.completed_at is not None

    run = await repo.get_run("r1")
    assert [s.step_key for s in run.steps] == ["n1:http-request"]


@pytest.mark.asyncio
async def test_completed_step_is_never_overwritten(repo):
    await repo.mark_step_started("r1", "s")
    await repo.mark_step_completed("r1", "s", status=STEP_COMPLETED, output="first")

    await repo.mark_step_started("r1", "s")
    await repo.mark_step_completed("r1", "s", status=STEP_FAILED, error="late")
    await repo.mark_step_completed("r1", "s", status=STEP_COMPLETED, output="second")

    step = await repo.get_step("r1", "s")
    assert step.status == STEP_COMPLETED
    assert step.output == "first"
    assert step.attempts == 1


@pytest.mark.asyncio
async def test_failed_step_is_reopened(repo):
    await repo.mark_step_started("r1", "s")
    await repo.mark_step_completed("r1", "s", status=STEP_FAILED, error="boom")
    step = await repo.get_step("r1", "s")
    assert step.status == STEP_FAILED
    assert step.error == "boom"

    await repo.mark_step_started("r1", "s")
    step = await repo.get_step("r1", "s")
    assert step.status == STEP_PENDING
    assert step.attempts == 2
    assert step.error is None


@pytest.mark.asyncio
async def test_steps_are_scoped_by_run(repo):
    await repo.mark_step_completed("r1", "s", status=STEP_COMPLETED, output=1)
    assert await repo.get_step("r2", "s") is None


@pytest.mark.asyncio
async def test_sqlite_state_survives_reconnect(tmp_path):
    path = tmp_path / "runs.db"
    first = SQLiteWorkflowRepository(path)
    await first.create_run("r1", "wf", {"x": 1})
    await first.mark_step_completed("r1", "prepare-workflow", status=STEP_COMPLETED, output={"nodes": []})

    second = SQLiteWorkflowRepository(path)
    run = await second.get_run("r1")
    assert run.workflow_id == "wf"
    step = await second.get_step("r1", "prepare-workflow")
    assert step.output == {"nodes": []}


def test_get_repository_selects_backend(tmp_path, monkeypatch):
    monkeypatch.delenv("NODEFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_repository_instance", None)

    repo = get_repository(config=NodeflowConfig())
    assert isinstance(repo, InMemoryWorkflowRepository)
    assert get_repository() is repo

    repo = get_repository(f"sqlite://{tmp_path / 'x.db'}")
    assert isinstance(repo, SQLiteWorkflowRepository)


def test_get_repository_rejects_unknown_scheme(monkeypatch):
    monkeypatch.setattr(persistence, "_repository_instance", None)
    with pytest.raises(ValueError):
        get_repository("mysql://localhost/db")
