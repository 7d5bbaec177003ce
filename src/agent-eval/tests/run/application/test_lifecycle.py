"""Tests for run creation, start, abort, retry and deletion through RunService."""

import pytest

from agent_eval.config.domain.run import RunConfig
from agent_eval.rubric.domain.rubric import ContainsRubric
from agent_eval.run.application.dispatch import WEBHOOK_TRAJECTORY_PATH
from agent_eval.run.domain.errors import (
    RunAlreadyRunningError,
    RunNotFoundError,
    RunUnitNotFoundError,
)
from agent_eval.run.domain.runtime import ExecRequest
from agent_eval.run.domain.status import RunStatus, RunUnitStatus
from agent_eval.run.domain.webhook import CompletionWebhook
from tests.run.fake_runtime import FakeAgentRuntime
from tests.run.harness import (
    BASE_URL,
    DATASET_ID,
    RunHarness,
    make_catalog,
    make_harness,
    make_test_case,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_harness(
    runtime: FakeAgentRuntime | None = None, env_prompt: str | None = None
) -> RunHarness:
    catalog = make_catalog(
        test_cases=[
            make_test_case("case-1", input="What is 6 x 7?", sort_order=0),
            make_test_case("case-2", input="What is 40 + 2?", sort_order=1),
        ],
        rubrics=[ContainsRubric(id="contains")],
        env_prompt=env_prompt,
    )
    return make_harness(catalog=catalog, runtime=runtime)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCreateRun:
    """A new run gets one pending unit and one conversation per test case."""

    async def test_creates_idle_run_with_pending_units(self) -> None:
        harness = _make_harness()

        run = await harness.service.create_run(dataset_id=DATASET_ID, name="nightly")

        assert run.id == "run-1"
        assert run.status is RunStatus.IDLE
        units = await harness.store.list_units(run.id)
        assert [u.test_case_id for u in units] == ["case-1", "case-2"]
        assert all(u.status is RunUnitStatus.PENDING for u in units)
        assert harness.observer.created[0].total_cases == 2

    async def test_topics_are_titled_after_the_case(self) -> None:
        harness = _make_harness()

        run = await harness.service.create_run(dataset_id=DATASET_ID)

        topic_id = await harness.topic_for(run.id, "case-2")
        assert harness.conversations.titles[topic_id] == "[Eval Case #2] What is 40 + 2?..."


class TestStartRun:
    """Starting a run dispatches every pending unit."""

    async def test_marks_run_running_and_dispatches(self) -> None:
        harness = _make_harness(env_prompt="Answer briefly.")
        run = await harness.service.create_run(
            dataset_id=DATASET_ID, target_agent_id="agent-7"
        )

        result = await harness.service.start_run(run.id)

        assert result.total_cases == 2
        assert result.to_execute == 2
        assert result.already_executed == 0
        started = await harness.store.get_run(run.id)
        assert started is not None
        assert started.status is RunStatus.RUNNING
        assert started.started_at == harness.clock.now
        assert started.metrics is not None
        assert started.metrics.total_cases == 2
        assert started.metrics.completed_cases == 0

        units = await harness.store.list_units(run.id)
        assert all(u.status is RunUnitStatus.RUNNING for u in units)
        assert all(u.eval_result.operation_id for u in units)

        request = harness.runtime.requests[0]
        assert request.agent_id == "agent-7"
        assert request.env_prompt == "Answer briefly."
        assert request.approval_mode == "headless"
        assert request.completion_webhook.url == BASE_URL + WEBHOOK_TRAJECTORY_PATH
        assert request.completion_webhook.body["runId"] == run.id
        assert request.completion_webhook.body["userId"] == "user-1"
        assert request.completion_webhook.body["topicId"] == request.topic_id
        assert {r.prompt for r in harness.runtime.requests} == {
            "What is 6 x 7?",
            "What is 40 + 2?",
        }

    async def test_max_steps_is_forwarded(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(
            dataset_id=DATASET_ID, config=RunConfig(max_steps=12)
        )

        await harness.service.start_run(run.id)

        assert all(r.max_steps == 12 for r in harness.runtime.requests)

    async def test_dry_run_dispatches_nothing(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)

        result = await harness.service.start_run(run.id, dry_run=True)

        assert result.dry_run is True
        assert result.to_execute == 2
        assert harness.runtime.requests == []
        current = await harness.store.get_run(run.id)
        assert current is not None
        assert current.status is RunStatus.IDLE

    async def test_running_run_requires_force(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)

        with pytest.raises(RunAlreadyRunningError):
            await harness.service.start_run(run.id)

    async def test_forced_restart_without_pending_units_is_a_no_op(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)

        result = await harness.service.start_run(run.id, force=True)

        assert result.to_execute == 0
        assert result.already_executed == 2
        assert len(harness.runtime.requests) == 2

    async def test_unknown_run(self) -> None:
        harness = _make_harness()
        with pytest.raises(RunNotFoundError):
            await harness.service.start_run("missing")


class TestDispatchFailures:
    """A unit that cannot be started is recorded as an error, never raised."""

    async def test_runtime_failure_marks_unit_error(self) -> None:
        harness = _make_harness(
            runtime=FakeAgentRuntime(fail_prompts={"What is 6 x 7?"})
        )
        run = await harness.service.create_run(dataset_id=DATASET_ID)

        await harness.service.start_run(run.id)

        failed = await harness.store.find_unit(run.id, "case-1")
        assert failed is not None
        assert failed.status is RunUnitStatus.ERROR
        assert failed.eval_result.error == "runtime unavailable"
        assert failed.eval_result.completion_reason == "error"
        other = await harness.store.find_unit(run.id, "case-2")
        assert other is not None
        assert other.status is RunUnitStatus.RUNNING
        assert harness.observer.dispatch_failures[0].test_case_id == "case-1"

    async def test_every_unit_failing_fails_the_run(self) -> None:
        harness = _make_harness(
            runtime=FakeAgentRuntime(fail_prompts={"What is 6 x 7?", "What is 40 + 2?"})
        )
        run = await harness.service.create_run(dataset_id=DATASET_ID)

        await harness.service.start_run(run.id)

        current = await harness.store.get_run(run.id)
        assert current is not None
        assert current.status is RunStatus.FAILED
        assert current.metrics is not None
        assert current.metrics.error_cases == 2

    async def test_missing_test_case_marks_unit_error(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        del harness.catalog.test_cases["case-2"]

        await harness.service.start_run(run.id)

        unit = await harness.store.find_unit(run.id, "case-2")
        assert unit is not None
        assert unit.status is RunUnitStatus.ERROR
        assert unit.eval_result.error == "Test case not found"


class TestAbortRun:
    """Abort terminates live units locally, then interrupts their operations."""

    async def test_abort_marks_units_and_interrupts(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)
        operations = {u.eval_result.operation_id for u in await harness.store.list_units(run.id)}

        await harness.service.abort_run(run.id)

        current = await harness.store.get_run(run.id)
        assert current is not None
        assert current.status is RunStatus.ABORTED
        for unit in await harness.store.list_units(run.id):
            assert unit.status is RunUnitStatus.ERROR
            assert unit.passed is False
            assert unit.score == 0.0
            assert unit.eval_result.error == "Aborted"
        assert set(harness.runtime.interrupted) == operations
        assert harness.observer.aborted[0].affected_units == 2

    async def test_interrupt_failures_do_not_undo_abort(self) -> None:
        harness = _make_harness(
            runtime=FakeAgentRuntime(interrupt_error=RuntimeError("gone"))
        )
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)

        await harness.service.abort_run(run.id)

        current = await harness.store.get_run(run.id)
        assert current is not None
        assert current.status is RunStatus.ABORTED
        assert len(harness.observer.interrupt_failures) == 2
        assert harness.observer.interrupt_failures[0].reason == "gone"

    async def test_webhooks_for_aborted_runs_are_cancelled(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)
        await harness.service.abort_run(run.id)

        outcome = await harness.service.handle_trajectory_complete(
            CompletionWebhook(run_id=run.id, test_case_id="case-1")
        )

        assert outcome is None
        unit = await harness.store.find_unit(run.id, "case-1")
        assert unit is not None
        assert unit.status is RunUnitStatus.ERROR

    @pytest.mark.parametrize("k", [1, 2])
    async def test_execution_accepted_during_abort_is_interrupted(self, k: int) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(
            dataset_id=DATASET_ID, config=RunConfig(k=k)
        )

        async def abort_once(request: ExecRequest) -> None:
            harness.runtime.on_accept = None
            await harness.service.abort_run(run.id)

        harness.runtime.on_accept = abort_once
        await harness.service.start_run(run.id)

        accepted = {f"op-{n}" for n in range(1, len(harness.runtime.requests) + 1)}
        assert "op-1" in accepted
        assert set(harness.runtime.interrupted) == accepted
        for unit in await harness.store.list_units(run.id):
            assert unit.status is RunUnitStatus.ERROR
            assert unit.eval_result.error == "Aborted"


class TestRetry:
    """Error and timeout units can be recreated and re-dispatched."""

    async def test_retry_error_cases_redispatches_failed_units(self) -> None:
        runtime = FakeAgentRuntime(fail_prompts={"What is 6 x 7?"})
        harness = _make_harness(runtime=runtime)
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)
        old_topic = await harness.topic_for(run.id, "case-1")
        runtime.fail_prompts.clear()

        retried = await harness.service.retry_error_cases(run.id)

        assert retried == 1
        assert old_topic in harness.conversations.deleted
        unit = await harness.store.find_unit(run.id, "case-1")
        assert unit is not None
        assert unit.topic_id != old_topic
        assert unit.status is RunUnitStatus.RUNNING
        current = await harness.store.get_run(run.id)
        assert current is not None
        assert current.status is RunStatus.RUNNING
        assert harness.observer.retried[0].retry_count == 1

    async def test_retry_without_error_units_does_nothing(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)

        assert await harness.service.retry_error_cases(run.id) == 0
        assert len(harness.runtime.requests) == 2

    async def test_retry_single_case(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)

        unit = await harness.service.retry_single_case(run.id, "case-2")

        assert unit.test_case_id == "case-2"
        assert len(harness.runtime.requests) == 3
        stored = await harness.store.find_unit(run.id, "case-2")
        assert stored is not None
        assert stored.status is RunUnitStatus.RUNNING
        assert stored.topic_id == unit.topic_id

    async def test_retry_single_case_unknown_unit(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)

        with pytest.raises(RunUnitNotFoundError):
            await harness.service.retry_single_case(run.id, "nope")


class TestDeleteRun:
    async def test_deletes_run_units_and_topics(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        topics = [u.topic_id for u in await harness.store.list_units(run.id)]

        await harness.service.delete_run(run.id)

        assert await harness.service.get_run_details(run.id) is None
        assert harness.conversations.deleted == topics
        assert harness.observer.deleted == [run.id]
