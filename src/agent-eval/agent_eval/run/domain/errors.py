"""Error types raised at the run orchestration boundary."""

from agent_eval.core.errors import AgentEvalError


class RunNotFoundError(AgentEvalError):
    """Raised when an operation targets a run that does not exist."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Run not found: {run_id}")


class RunUnitNotFoundError(AgentEvalError):
    """Raised when no unit exists for the given run and test case."""

    def __init__(self, run_id: str, test_case_id: str) -> None:
        self.run_id = run_id
        self.test_case_id = test_case_id
        super().__init__(
            f"Run unit not found for run={run_id} test_case={test_case_id}"
        )


class RunAlreadyRunningError(AgentEvalError):
    """Raised when starting a run that is already running without force."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to start run: run {run_id} is already running")
