"""Run-detail cache reducer — pure state transitions over an id-keyed mapping.

The reducer never mutates its input: every action returns a new mapping, so
callers can keep and compare previous states.
"""

from collections.abc import Mapping
from typing import Annotated, Any, Literal, assert_never

from pydantic import BaseModel, Field

from agent_eval.run.domain.detail import RunDetail


class SetRunDetail(BaseModel, frozen=True):
    type: Literal["set"] = "set"
    id: str
    value: RunDetail


class UpdateRunDetail(BaseModel, frozen=True):
    """Merge value into an existing entry; unknown ids are left alone."""

    type: Literal["update"] = "update"
    id: str
    value: dict[str, Any]


class DeleteRunDetail(BaseModel, frozen=True):
    type: Literal["delete"] = "delete"
    id: str


type RunDetailAction = Annotated[
    SetRunDetail | UpdateRunDetail | DeleteRunDetail,
    Field(discriminator="type"),
]


def run_detail_reducer(
    state: Mapping[str, RunDetail], action: RunDetailAction
) -> dict[str, RunDetail]:
    next_state = dict(state)
    match action:
        case SetRunDetail():
            next_state[action.id] = action.value
        case UpdateRunDetail():
            current = next_state.get(action.id)
            if current is not None:
                next_state[action.id] = current.model_copy(update=action.value)
        case DeleteRunDetail():
            next_state.pop(action.id, None)
        case _:
            assert_never(action)
    return next_state
