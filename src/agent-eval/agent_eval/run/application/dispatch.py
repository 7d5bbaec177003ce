"""Dispatch — start agent executions for pending units, one per unit or k per unit."""

import asyncio
from urllib.parse import urljoin

from agent_eval.run.application.completion import CompletionRecorder
from agent_eval.run.application.interrupt import interrupt_operations
from agent_eval.run.domain.catalog import EvalCatalog, TestCase
from agent_eval.run.domain.conversation import ConversationStore
from agent_eval.run.domain.observer import RunObserver
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.runtime import AgentRuntime, ExecRequest, WebhookTarget
from agent_eval.run.domain.status import ACTIVE_UNIT_STATUSES, RunUnitStatus
from agent_eval.run.domain.store import RunStore, ThreadLedger
from agent_eval.run.domain.unit import RunUnit, ThreadResult, UnitEvalResult, UnitPatch

WEBHOOK_TRAJECTORY_PATH = "/api/workflows/agent-eval-run/on-trajectory-complete"
WEBHOOK_THREAD_PATH = "/api/workflows/agent-eval-run/on-thread-complete"

_PENDING = frozenset({RunUnitStatus.PENDING})


class RunDispatcher:
    """Starts executions on the agent runtime without waiting for them to finish.

    Completion arrives later through the webhook target handed to the runtime.
    A unit whose execution cannot be started is recorded as an error instead
    of raising, so one failing case never blocks the others.
    """

    def __init__(
        self,
        store: RunStore,
        ledger: ThreadLedger,
        conversations: ConversationStore,
        runtime: AgentRuntime,
        catalog: EvalCatalog,
        recorder: CompletionRecorder,
        observer: RunObserver,
        base_url: str,
        user_id: str | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._conversations = conversations
        self._runtime = runtime
        self._catalog = catalog
        self._recorder = recorder
        self._observer = observer
        self._base_url = base_url
        self._user_id = user_id

    async def dispatch_all(self, run: Run, units: list[RunUnit]) -> None:
        """Dispatch every unit concurrently."""
        env_prompt = await self._env_prompt(run)
        async with asyncio.TaskGroup() as tg:
            for unit in units:
                tg.create_task(self.dispatch_unit(run=run, unit=unit, env_prompt=env_prompt))

    async def dispatch_unit(
        self, run: Run, unit: RunUnit, env_prompt: str | None = None
    ) -> None:
        """Move unit from pending to running and start its execution(s). Never raises."""
        try:
            test_case = await self._catalog.get_test_case(unit.test_case_id)
            if test_case is None:
                await self._fail_unit(run=run, unit=unit, reason="Test case not found")
                return

            running = await self._store.update_unit(
                run.id,
                unit.topic_id,
                UnitPatch(status=RunUnitStatus.RUNNING),
                expected_statuses=_PENDING,
            )
            if running is None:
                return

            if run.config.k > 1:
                await self._dispatch_threads(
                    run=run, unit=running, test_case=test_case, env_prompt=env_prompt
                )
            else:
                await self._dispatch_single(
                    run=run, unit=running, test_case=test_case, env_prompt=env_prompt
                )
        except Exception as exc:
            await self._fail_unit(run=run, unit=unit, reason=str(exc))

    async def _dispatch_single(
        self, run: Run, unit: RunUnit, test_case: TestCase, env_prompt: str | None
    ) -> None:
        request = self._request(
            run=run,
            unit=unit,
            test_case=test_case,
            env_prompt=env_prompt,
            thread_id=None,
            webhook=WebhookTarget(
                url=urljoin(self._base_url, WEBHOOK_TRAJECTORY_PATH),
                body={
                    "runId": run.id,
                    "testCaseId": unit.test_case_id,
                    "topicId": unit.topic_id,
                    "userId": self._user_id,
                },
            ),
        )
        try:
            response = await self._runtime.exec_agent(request)
        except Exception as exc:
            await self._fail_unit(
                run=run,
                unit=unit,
                reason=str(exc) or "Agent execution failed to start",
            )
            return

        if response.operation_id:
            attached = await self._store.attach_operation(
                run.id, unit.topic_id, response.operation_id
            )
            if attached is None or attached.status is not RunUnitStatus.RUNNING:
                await self._interrupt(run=run, operation_id=response.operation_id)
                return
        self._observer.unit_dispatched(
            run_id=run.id,
            test_case_id=unit.test_case_id,
            operation_id=response.operation_id,
        )

    async def _dispatch_threads(
        self, run: Run, unit: RunUnit, test_case: TestCase, env_prompt: str | None
    ) -> None:
        thread_ids = await self._conversations.create_threads(
            topic_id=unit.topic_id, count=run.config.k
        )
        await self._ledger.register_threads(run.id, unit.topic_id, thread_ids)
        async with asyncio.TaskGroup() as tg:
            for thread_id in thread_ids:
                tg.create_task(
                    self._dispatch_thread(
                        run=run,
                        unit=unit,
                        test_case=test_case,
                        env_prompt=env_prompt,
                        thread_id=thread_id,
                    )
                )

    async def _dispatch_thread(
        self,
        run: Run,
        unit: RunUnit,
        test_case: TestCase,
        env_prompt: str | None,
        thread_id: str,
    ) -> None:
        request = self._request(
            run=run,
            unit=unit,
            test_case=test_case,
            env_prompt=env_prompt,
            thread_id=thread_id,
            webhook=WebhookTarget(
                url=urljoin(self._base_url, WEBHOOK_THREAD_PATH),
                body={
                    "runId": run.id,
                    "testCaseId": unit.test_case_id,
                    "threadId": thread_id,
                    "topicId": unit.topic_id,
                    "userId": self._user_id,
                },
            ),
        )
        try:
            response = await self._runtime.exec_agent(request)
        except Exception as exc:
            reason = str(exc) or "Thread execution failed to start"
            self._observer.thread_dispatch_failed(
                run_id=run.id,
                test_case_id=unit.test_case_id,
                thread_id=thread_id,
                reason=reason,
            )
            # a thread that never started still counts towards the barrier
            await self._recorder.record_thread_result(
                run=run,
                unit=unit,
                result=ThreadResult(thread_id=thread_id, error=reason),
            )
            return

        if response.operation_id:
            await self._ledger.set_thread_operation(
                run.id, unit.topic_id, thread_id, response.operation_id
            )
            current = await self._store.find_unit(run.id, unit.test_case_id)
            if (
                current is None
                or current.topic_id != unit.topic_id
                or current.status is not RunUnitStatus.RUNNING
            ):
                await self._interrupt(run=run, operation_id=response.operation_id)
                return
        self._observer.unit_dispatched(
            run_id=run.id,
            test_case_id=unit.test_case_id,
            operation_id=response.operation_id,
        )

    def _request(
        self,
        run: Run,
        unit: RunUnit,
        test_case: TestCase,
        env_prompt: str | None,
        thread_id: str | None,
        webhook: WebhookTarget,
    ) -> ExecRequest:
        return ExecRequest(
            agent_id=run.target_agent_id,
            topic_id=unit.topic_id,
            thread_id=thread_id,
            prompt=test_case.content.input,
            env_prompt=env_prompt or None,
            max_steps=run.config.max_steps,
            completion_webhook=webhook,
        )

    async def _interrupt(self, run: Run, operation_id: str) -> None:
        """Stop an execution accepted after its unit was aborted or timed out."""
        await interrupt_operations(
            runtime=self._runtime,
            operation_ids=[operation_id],
            run_id=run.id,
            observer=self._observer,
        )

    async def _fail_unit(self, run: Run, unit: RunUnit, reason: str) -> None:
        self._observer.unit_dispatch_failed(
            run_id=run.id, test_case_id=unit.test_case_id, reason=reason
        )
        failed = await self._store.update_unit(
            run.id,
            unit.topic_id,
            UnitPatch(
                status=RunUnitStatus.ERROR,
                passed=False,
                score=0.0,
                eval_result=UnitEvalResult(completion_reason="error", error=reason),
            ),
            expected_statuses=ACTIVE_UNIT_STATUSES,
        )
        if failed is not None:
            await self._recorder.refresh_progress(run.id)

    async def _env_prompt(self, run: Run) -> str | None:
        dataset = await self._catalog.get_dataset(run.dataset_id)
        return dataset.env_prompt if dataset is not None else None
