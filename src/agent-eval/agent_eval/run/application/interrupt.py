"""Best-effort interruption of live agent operations."""

from collections.abc import Iterable

from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.runtime import AgentRuntime


async def interrupt_operations(
    runtime: AgentRuntime,
    operation_ids: Iterable[str | None],
    run_id: str,
    observer: RunObserver,
) -> None:
    """Ask the runtime to stop each operation; failures are reported, never raised.

    Local state transitions (abort, timeout) have already happened by the time
    this runs, so a remote failure must not undo them.
    """
    for operation_id in operation_ids:
        if not operation_id:
            continue
        try:
            await runtime.interrupt_operation(operation_id)
        except Exception as exc:
            observer.interrupt_failed(
                run_id=run_id, operation_id=operation_id, reason=str(exc)
            )
