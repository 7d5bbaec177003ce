"""Run lifecycle — create, start, abort, retry and delete runs."""

import uuid
from collections.abc import Callable

from pydantic import BaseModel

from agent_eval.config.domain.run import RunConfig
from agent_eval.run.application.clock import Clock, utc_now
from agent_eval.run.application.dispatch import RunDispatcher
from agent_eval.run.application.interrupt import interrupt_operations
from agent_eval.run.domain.catalog import EvalCatalog, TestCase
from agent_eval.run.domain.conversation import ConversationStore
from agent_eval.run.domain.errors import (
    RunAlreadyRunningError,
    RunNotFoundError,
    RunUnitNotFoundError,
)
from agent_eval.run.domain.metrics import RunMetrics
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run, RunPatch
from agent_eval.run.domain.runtime import AgentRuntime
from agent_eval.run.domain.status import (
    RETRYABLE_UNIT_STATUSES,
    RunStatus,
    RunUnitStatus,
)
from agent_eval.run.domain.store import RunStore, ThreadLedger
from agent_eval.run.domain.unit import RunUnit

type IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


def case_title(test_case: TestCase) -> str:
    """Conversation title for a test case: sort position and start of its input."""
    snippet = test_case.content.input[:50] or "Test Case"
    return f"[Eval Case #{test_case.sort_order + 1}] {snippet}..."


class StartRunResult(BaseModel, frozen=True):
    total_cases: int
    to_execute: int
    already_executed: int
    dry_run: bool = False


class RunLifecycle:
    """State transitions a user or workflow triggers on a run as a whole."""

    def __init__(
        self,
        store: RunStore,
        ledger: ThreadLedger,
        conversations: ConversationStore,
        runtime: AgentRuntime,
        catalog: EvalCatalog,
        dispatcher: RunDispatcher,
        observer: RunObserver,
        clock: Clock = utc_now,
        id_factory: IdFactory = new_id,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._conversations = conversations
        self._runtime = runtime
        self._catalog = catalog
        self._dispatcher = dispatcher
        self._observer = observer
        self._clock = clock
        self._id_factory = id_factory

    async def create_run(
        self,
        dataset_id: str,
        target_agent_id: str | None = None,
        name: str | None = None,
        config: RunConfig | None = None,
    ) -> Run:
        """Create an idle run with one pending unit (and conversation) per test case."""
        run = Run(
            id=self._id_factory(),
            dataset_id=dataset_id,
            target_agent_id=target_agent_id,
            name=name,
            config=config or RunConfig(),
            created_at=self._clock(),
        )
        await self._store.create_run(run)

        test_cases = await self._catalog.list_test_cases(dataset_id)
        await self._create_units(run=run, test_cases=test_cases)
        self._observer.run_created(run_id=run.id, total_cases=len(test_cases))
        return run

    async def start_run(
        self, run_id: str, force: bool = False, dry_run: bool = False
    ) -> StartRunResult:
        """Dispatch every pending unit of a run.

        Raises:
            RunNotFoundError: if the run does not exist.
            RunAlreadyRunningError: if the run is running and force is not set.
        """
        run = await self._require_run(run_id)
        if run.status is RunStatus.RUNNING and not force:
            raise RunAlreadyRunningError(run_id)

        units = await self._store.list_units(run_id)
        pending = [unit for unit in units if unit.status is RunUnitStatus.PENDING]
        result = StartRunResult(
            total_cases=len(units),
            to_execute=len(pending),
            already_executed=len(units) - len(pending),
            dry_run=dry_run,
        )
        if dry_run or not pending:
            return result

        started = await self._store.update_run(
            run_id,
            RunPatch(
                status=RunStatus.RUNNING,
                started_at=self._clock(),
                metrics=RunMetrics(total_cases=len(units), completed_cases=0),
            ),
        )
        self._observer.run_started(
            run_id=run_id, total_cases=len(units), to_execute=len(pending)
        )
        await self._dispatcher.dispatch_all(run=started, units=pending)
        return result

    async def abort_run(self, run_id: str) -> None:
        """Mark every pending or running unit as aborted, then interrupt live operations.

        The local transition always completes; interrupt failures are only reported.
        """
        await self._require_run(run_id)
        aborted = await self._store.mark_aborted(run_id)
        await self._store.update_run(run_id, RunPatch(status=RunStatus.ABORTED))
        self._observer.run_aborted(run_id=run_id, affected_units=len(aborted))

        operation_ids: list[str | None] = []
        for unit in aborted:
            operation_ids.append(unit.eval_result.operation_id)
            operation_ids.extend(
                await self._ledger.thread_operations(run_id, unit.topic_id)
            )
            await self._ledger.discard(run_id, unit.topic_id)
        await interrupt_operations(
            runtime=self._runtime,
            operation_ids=operation_ids,
            run_id=run_id,
            observer=self._observer,
        )

    async def retry_error_cases(self, run_id: str) -> int:
        """Recreate every error or timeout unit as pending; return how many were reset."""
        run = await self._require_run(run_id)
        removed = await self._store.delete_units(run_id, RETRYABLE_UNIT_STATUSES)
        if not removed:
            return 0

        await self._conversations.delete_topics([unit.topic_id for unit in removed])
        test_cases = []
        for unit in removed:
            await self._ledger.discard(run_id, unit.topic_id)
            test_case = await self._catalog.get_test_case(unit.test_case_id)
            if test_case is not None:
                test_cases.append(test_case)

        await self._create_units(run=run, test_cases=test_cases)
        await self._store.update_run(run_id, RunPatch(status=RunStatus.PENDING))
        self._observer.run_retried(run_id=run_id, retry_count=len(removed))
        return len(removed)

    async def retry_single_case(self, run_id: str, test_case_id: str) -> RunUnit:
        """Replace one unit with a fresh pending unit and return it.

        Raises:
            RunNotFoundError: if the run does not exist.
            RunUnitNotFoundError: if the run has no unit for test_case_id.
        """
        run = await self._require_run(run_id)
        removed = await self._store.delete_unit(run_id, test_case_id)
        if removed is None:
            raise RunUnitNotFoundError(run_id, test_case_id)

        await self._conversations.delete_topics([removed.topic_id])
        await self._ledger.discard(run_id, removed.topic_id)

        test_case = await self._catalog.get_test_case(test_case_id)
        title = case_title(test_case) if test_case is not None else "Test Case..."
        [topic_id] = await self._conversations.create_topics(
            titles=[title], agent_id=run.target_agent_id
        )
        unit = RunUnit(
            run_id=run_id,
            topic_id=topic_id,
            test_case_id=test_case_id,
            created_at=self._clock(),
        )
        await self._store.create_units([unit])
        await self._store.update_run(run_id, RunPatch(status=RunStatus.RUNNING))
        self._observer.run_retried(run_id=run_id, retry_count=1)
        return unit

    async def delete_run(self, run_id: str) -> None:
        """Delete the run, its units and their conversations."""
        removed = await self._store.delete_run(run_id)
        for unit in removed:
            await self._ledger.discard(run_id, unit.topic_id)
        if removed:
            await self._conversations.delete_topics([unit.topic_id for unit in removed])
        self._observer.run_deleted(run_id=run_id)

    async def _create_units(self, run: Run, test_cases: list[TestCase]) -> None:
        if not test_cases:
            return
        topic_ids = await self._conversations.create_topics(
            titles=[case_title(test_case) for test_case in test_cases],
            agent_id=run.target_agent_id,
        )
        now = self._clock()
        await self._store.create_units(
            [
                RunUnit(
                    run_id=run.id,
                    topic_id=topic_id,
                    test_case_id=test_case.id,
                    created_at=now,
                )
                for topic_id, test_case in zip(topic_ids, test_cases, strict=True)
            ]
        )

    async def _require_run(self, run_id: str) -> Run:
        run = await self._store.get_run(run_id)
        if run is None:
            raise RunNotFoundError(run_id)
        return run
