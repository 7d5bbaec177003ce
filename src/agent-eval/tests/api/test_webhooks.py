"""Tests for the webhook endpoints, served in-process over ASGI."""

import httpx

from agent_eval.api.app import create_app
from agent_eval.config.domain.run import RunConfig
from agent_eval.rubric.domain.rubric import ContainsRubric
from agent_eval.run.application.dispatch import WEBHOOK_THREAD_PATH, WEBHOOK_TRAJECTORY_PATH
from agent_eval.run.domain.status import RunUnitStatus
from tests.run.harness import (
    DATASET_ID,
    RunHarness,
    make_catalog,
    make_harness,
    make_test_case,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_harness() -> RunHarness:
    catalog = make_catalog(
        test_cases=[make_test_case("case-1")],
        rubrics=[ContainsRubric(id="contains")],
    )
    return make_harness(catalog=catalog)


def _client(harness: RunHarness) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_app(harness.service)),
        base_url="http://testserver",
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestTrajectoryWebhook:
    async def test_records_completion(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)
        harness.conversations.set_output(await harness.topic_for(run.id, "case-1"), "42")

        async with _client(harness) as client:
            response = await client.post(
                WEBHOOK_TRAJECTORY_PATH,
                json={
                    "runId": run.id,
                    "testCaseId": "case-1",
                    "userId": "user-1",
                    "status": "completed",
                    "telemetry": {"completionReason": "completed", "cost": 0.01},
                },
            )

        assert response.status_code == 200
        assert response.json() == {"success": True, "allDone": True, "completedCount": 1}
        unit = await harness.store.find_unit(run.id, "case-1")
        assert unit is not None
        assert unit.status is RunUnitStatus.PASSED

    async def test_unknown_run_is_404(self) -> None:
        harness = _make_harness()

        async with _client(harness) as client:
            response = await client.post(
                WEBHOOK_TRAJECTORY_PATH, json={"runId": "nope", "testCaseId": "case-1"}
            )

        assert response.status_code == 404
        assert response.json()["detail"] == "Run not found: nope"

    async def test_aborted_run_is_cancelled(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(dataset_id=DATASET_ID)
        await harness.service.start_run(run.id)
        await harness.service.abort_run(run.id)

        async with _client(harness) as client:
            response = await client.post(
                WEBHOOK_TRAJECTORY_PATH, json={"runId": run.id, "testCaseId": "case-1"}
            )

        assert response.status_code == 200
        assert response.json() == {"cancelled": True}

    async def test_invalid_payload_is_422(self) -> None:
        harness = _make_harness()

        async with _client(harness) as client:
            response = await client.post(WEBHOOK_TRAJECTORY_PATH, json={"runId": "x"})

        assert response.status_code == 422


class TestThreadWebhook:
    async def test_missing_thread_or_topic_is_400(self) -> None:
        harness = _make_harness()

        async with _client(harness) as client:
            response = await client.post(
                WEBHOOK_THREAD_PATH, json={"runId": "run-1", "testCaseId": "case-1"}
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing threadId or topicId"

    async def test_reports_barrier_progress(self) -> None:
        harness = _make_harness()
        run = await harness.service.create_run(
            dataset_id=DATASET_ID, config=RunConfig(k=2)
        )
        await harness.service.start_run(run.id)
        topic_id = await harness.topic_for(run.id, "case-1")
        first, second = harness.conversations.threads[topic_id]
        harness.conversations.set_output(topic_id, "42", thread_id=first)
        harness.conversations.set_output(topic_id, "42", thread_id=second)

        async with _client(harness) as client:
            partial = await client.post(
                WEBHOOK_THREAD_PATH,
                json={
                    "runId": run.id,
                    "testCaseId": "case-1",
                    "threadId": first,
                    "topicId": topic_id,
                },
            )
            done = await client.post(
                WEBHOOK_THREAD_PATH,
                json={
                    "runId": run.id,
                    "testCaseId": "case-1",
                    "threadId": second,
                    "topicId": topic_id,
                },
            )

        assert partial.json() == {
            "success": True,
            "allThreadsDone": False,
            "allRunDone": False,
        }
        assert done.json() == {"success": True, "allThreadsDone": True, "allRunDone": True}
