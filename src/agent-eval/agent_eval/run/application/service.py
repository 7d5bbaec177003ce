"""RunService — the single entry point the API and workflows drive runs through."""

from agent_eval.config.domain.run import RunConfig
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.run.application.clock import Clock, utc_now
from agent_eval.run.application.completion import (
    CompletionRecorder,
    ThreadOutcome,
    TrajectoryOutcome,
)
from agent_eval.run.application.dispatch import RunDispatcher
from agent_eval.run.application.evaluation import CaseEvaluator
from agent_eval.run.application.finalizer import RunFinalizer
from agent_eval.run.application.lifecycle import (
    IdFactory,
    RunLifecycle,
    StartRunResult,
    new_id,
)
from agent_eval.run.application.timeout import TimeoutSweeper
from agent_eval.run.domain.catalog import EvalCatalog
from agent_eval.run.domain.conversation import ConversationStore
from agent_eval.run.domain.detail import RunDetail
from agent_eval.run.domain.errors import RunNotFoundError
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.runtime import AgentRuntime
from agent_eval.run.domain.status import RunStatus
from agent_eval.run.domain.store import RunStore, ThreadLedger
from agent_eval.run.domain.unit import RunUnit
from agent_eval.run.domain.webhook import CompletionWebhook


class RunService:
    """Wires the run components together around one store and one runtime.

    Every collaborator is injected; nothing here holds state beyond them.
    """

    def __init__(
        self,
        store: RunStore,
        ledger: ThreadLedger,
        conversations: ConversationStore,
        runtime: AgentRuntime,
        catalog: EvalCatalog,
        observer: RunObserver,
        base_url: str,
        user_id: str | None = None,
        match_context: MatchContext | None = None,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._store = store
        finalizer = RunFinalizer(store=store, observer=observer, clock=clock)
        self._recorder = CompletionRecorder(
            store=store,
            ledger=ledger,
            evaluator=CaseEvaluator(
                catalog=catalog,
                conversations=conversations,
                match_context=match_context,
            ),
            finalizer=finalizer,
            observer=observer,
        )
        self._dispatcher = RunDispatcher(
            store=store,
            ledger=ledger,
            conversations=conversations,
            runtime=runtime,
            catalog=catalog,
            recorder=self._recorder,
            observer=observer,
            base_url=base_url,
            user_id=user_id,
        )
        self._lifecycle = RunLifecycle(
            store=store,
            ledger=ledger,
            conversations=conversations,
            runtime=runtime,
            catalog=catalog,
            dispatcher=self._dispatcher,
            observer=observer,
            clock=clock,
            id_factory=id_factory,
        )
        self._sweeper = TimeoutSweeper(
            store=store,
            ledger=ledger,
            runtime=runtime,
            finalizer=finalizer,
            observer=observer,
            clock=clock,
        )

    async def create_run(
        self,
        dataset_id: str,
        target_agent_id: str | None = None,
        name: str | None = None,
        config: RunConfig | None = None,
    ) -> Run:
        return await self._lifecycle.create_run(
            dataset_id=dataset_id,
            target_agent_id=target_agent_id,
            name=name,
            config=config,
        )

    async def start_run(
        self, run_id: str, force: bool = False, dry_run: bool = False
    ) -> StartRunResult:
        return await self._lifecycle.start_run(run_id=run_id, force=force, dry_run=dry_run)

    async def abort_run(self, run_id: str) -> None:
        await self._lifecycle.abort_run(run_id)

    async def retry_error_cases(self, run_id: str) -> int:
        """Reset error and timeout units and restart the run if any were reset."""
        retry_count = await self._lifecycle.retry_error_cases(run_id)
        if retry_count > 0:
            await self._lifecycle.start_run(run_id=run_id, force=True)
        return retry_count

    async def retry_single_case(self, run_id: str, test_case_id: str) -> RunUnit:
        """Reset one unit and dispatch it straight away."""
        unit = await self._lifecycle.retry_single_case(
            run_id=run_id, test_case_id=test_case_id
        )
        run = await self._require_run(run_id)
        await self._dispatcher.dispatch_all(run=run, units=[unit])
        return unit

    async def delete_run(self, run_id: str) -> None:
        await self._lifecycle.delete_run(run_id)

    async def get_run_details(self, run_id: str) -> RunDetail | None:
        """Return the run and its units, sweeping timed-out units of a running run first."""
        run = await self._store.get_run(run_id)
        if run is None:
            return None
        if run.status is RunStatus.RUNNING and await self._sweeper.sweep(run):
            run = await self._require_run(run_id)
        units = await self._store.list_units(run_id)
        return RunDetail(run=run, units=units)

    async def sweep_timeouts(self, run_id: str) -> bool:
        run = await self._require_run(run_id)
        if run.status is not RunStatus.RUNNING:
            return False
        return await self._sweeper.sweep(run)

    async def handle_trajectory_complete(
        self, webhook: CompletionWebhook
    ) -> TrajectoryOutcome | None:
        """Apply a single-execution completion; None means the run was aborted.

        Raises:
            RunNotFoundError: if the webhook names an unknown run.
        """
        run = await self._require_run(webhook.run_id)
        if run.status is RunStatus.ABORTED:
            return None
        return await self._recorder.record_trajectory_completion(run=run, webhook=webhook)

    async def handle_thread_complete(
        self, webhook: CompletionWebhook
    ) -> ThreadOutcome | None:
        """Apply one thread completion; None means the run was aborted.

        Raises:
            RunNotFoundError: if the webhook names an unknown run.
        """
        run = await self._require_run(webhook.run_id)
        if run.status is RunStatus.ABORTED:
            return None
        return await self._recorder.record_thread_completion(run=run, webhook=webhook)

    async def _require_run(self, run_id: str) -> Run:
        run = await self._store.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run
