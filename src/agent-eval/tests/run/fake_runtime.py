"""FakeAgentRuntime — accepts executions in memory without running anything."""

from collections.abc import Awaitable, Callable

from agent_eval.run.domain.runtime import ExecRequest, ExecResponse


class FakeAgentRuntime:
    """Satisfies the AgentRuntime protocol structurally.

    Every accepted request gets operation id "op-<n>". Requests whose prompt is
    in fail_prompts, or whose thread id is in fail_threads, raise start_error.
    on_accept, when set, is awaited after a request is accepted and before its
    response is returned.
    """

    def __init__(
        self,
        fail_prompts: set[str] | None = None,
        fail_threads: set[str] | None = None,
        start_error: Exception | None = None,
        interrupt_error: Exception | None = None,
    ) -> None:
        self.fail_prompts = fail_prompts or set()
        self.fail_threads = fail_threads or set()
        self._start_error = start_error or RuntimeError("runtime unavailable")
        self._interrupt_error = interrupt_error
        self.requests: list[ExecRequest] = []
        self.interrupted: list[str] = []
        self.on_accept: Callable[[ExecRequest], Awaitable[None]] | None = None

    async def exec_agent(self, request: ExecRequest) -> ExecResponse:
        if request.prompt in self.fail_prompts or (
            request.thread_id is not None and request.thread_id in self.fail_threads
        ):
            raise self._start_error
        self.requests.append(request)
        if self.on_accept is not None:
            await self.on_accept(request)
        return ExecResponse(operation_id=f"op-{len(self.requests)}")

    async def interrupt_operation(self, operation_id: str) -> None:
        if self._interrupt_error is not None:
            raise self._interrupt_error
        self.interrupted.append(operation_id)
