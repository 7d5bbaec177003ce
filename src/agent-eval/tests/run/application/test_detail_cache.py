"""Tests for the run-detail cache reducer."""

from pydantic import TypeAdapter

from agent_eval.run.application.detail_cache import (
    DeleteRunDetail,
    RunDetailAction,
    SetRunDetail,
    UpdateRunDetail,
    run_detail_reducer,
)
from agent_eval.run.domain.detail import RunDetail
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.status import RunStatus
from tests.run.fake_clock import EPOCH


def _make_detail(run_id: str = "run-1") -> RunDetail:
    return RunDetail(run=Run(id=run_id, dataset_id="ds-1", created_at=EPOCH))


class TestRunDetailReducer:
    """Every action returns a new mapping and leaves the input untouched."""

    def test_set_adds_entry(self) -> None:
        detail = _make_detail()
        state = run_detail_reducer({}, SetRunDetail(id="run-1", value=detail))
        assert state == {"run-1": detail}

    def test_update_merges_into_existing_entry(self) -> None:
        before = {"run-1": _make_detail()}
        running = before["run-1"].run.model_copy(update={"status": RunStatus.RUNNING})

        after = run_detail_reducer(
            before, UpdateRunDetail(id="run-1", value={"run": running})
        )

        assert after["run-1"].run.status is RunStatus.RUNNING
        assert before["run-1"].run.status is RunStatus.IDLE

    def test_update_of_unknown_id_is_ignored(self) -> None:
        before = {"run-1": _make_detail()}
        after = run_detail_reducer(before, UpdateRunDetail(id="run-2", value={"units": []}))
        assert after == before
        assert after is not before

    def test_delete_removes_entry(self) -> None:
        before = {"run-1": _make_detail(), "run-2": _make_detail("run-2")}
        after = run_detail_reducer(before, DeleteRunDetail(id="run-1"))
        assert list(after) == ["run-2"]
        assert list(before) == ["run-1", "run-2"]

    def test_actions_parse_from_tagged_dicts(self) -> None:
        action = TypeAdapter(RunDetailAction).validate_python(
            {"type": "delete", "id": "run-1"}
        )
        assert isinstance(action, DeleteRunDetail)
