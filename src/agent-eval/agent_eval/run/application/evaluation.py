"""Case evaluation — resolve rubrics for a finished execution and score its output."""

from agent_eval.rubric.application.evaluate import EvaluateOptions, evaluate
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.rubric.domain.rubric import Rubric, rubric_from_eval_mode
from agent_eval.run.application.metrics import round_cost
from agent_eval.run.domain.catalog import Benchmark, EvalCatalog, EvalDataset, TestCase
from agent_eval.run.domain.conversation import ConversationStore
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.status import RunUnitStatus
from agent_eval.run.domain.telemetry import ExecutionTelemetry
from agent_eval.run.domain.unit import RubricScore, RunUnit, ThreadResult, UnitPatch


def resolve_rubrics(
    test_case: TestCase, dataset: EvalDataset, benchmark: Benchmark
) -> list[Rubric]:
    """Pick the rubrics a test case is judged by.

    A test case eval mode beats the dataset's; either one replaces the
    benchmark rubrics with a single implicit rubric.
    """
    eval_mode = test_case.eval_mode or dataset.eval_mode
    if eval_mode:
        eval_config = (
            test_case.eval_config
            if test_case.eval_config is not None
            else dataset.eval_config
        )
        return [rubric_from_eval_mode(eval_mode=eval_mode, eval_config=eval_config)]
    return list(benchmark.rubrics)


class CaseEvaluator:
    """Scores the last assistant output of a unit (or one of its threads)."""

    def __init__(
        self,
        catalog: EvalCatalog,
        conversations: ConversationStore,
        match_context: MatchContext | None = None,
    ) -> None:
        self._catalog = catalog
        self._conversations = conversations
        self._match_context = match_context or MatchContext()

    async def evaluate_unit(self, run: Run, unit: RunUnit) -> UnitPatch | None:
        """Verdict patch for a single-execution unit.

        Returns None when the run's catalog entries are gone or no rubric
        applies; the unit then keeps its recorded telemetry only.
        """
        context = await self._load_context(run=run, test_case_id=unit.test_case_id)
        if isinstance(context, str):
            return None
        test_case, dataset, benchmark = context

        existing = unit.eval_result
        output = await self._conversations.last_assistant_output(topic_id=unit.topic_id)
        if not output:
            return UnitPatch(
                status=RunUnitStatus.ERROR,
                passed=False,
                score=0.0,
                eval_result=existing.model_copy(
                    update={"error": "No assistant output", "rubric_scores": []}
                ),
            )

        rubrics = resolve_rubrics(test_case=test_case, dataset=dataset, benchmark=benchmark)
        if not rubrics:
            return None

        result = await evaluate(
            actual=output,
            rubrics=rubrics,
            test_case=test_case.content,
            options=self._options(run=run, benchmark=benchmark),
        )
        return UnitPatch(
            status=RunUnitStatus.PASSED if result.passed else RunUnitStatus.FAILED,
            passed=result.passed,
            score=result.score,
            eval_result=existing.model_copy(
                update={"rubric_scores": _rubric_scores(result.rubric_results)}
            ),
        )

    async def evaluate_thread(
        self,
        run: Run,
        test_case_id: str,
        topic_id: str,
        thread_id: str,
        status: str,
        telemetry: ExecutionTelemetry,
    ) -> ThreadResult:
        """Score one thread of a k > 1 unit; failures become a failed ThreadResult."""
        base = ThreadResult(
            thread_id=thread_id,
            completion_reason=telemetry.completion_reason,
            cost=round_cost(telemetry.cost) if telemetry.cost is not None else None,
            duration=telemetry.duration,
            llm_calls=telemetry.llm_calls,
            steps=telemetry.steps,
            tokens=telemetry.total_tokens,
            tool_calls=telemetry.tool_calls,
        )

        if status == "error":
            return base.model_copy(
                update={
                    "error": telemetry.error_message
                    or f"Execution error: {telemetry.completion_reason or 'unknown'}",
                    "error_detail": telemetry.error_detail,
                }
            )

        context = await self._load_context(run=run, test_case_id=test_case_id)
        if isinstance(context, str):
            return base.model_copy(update={"error": context})
        test_case, dataset, benchmark = context

        output = await self._conversations.last_assistant_output(
            topic_id=topic_id, thread_id=thread_id
        )
        if not output:
            return base.model_copy(update={"error": "No assistant output"})

        result = await evaluate(
            actual=output,
            rubrics=resolve_rubrics(
                test_case=test_case, dataset=dataset, benchmark=benchmark
            ),
            test_case=test_case.content,
            options=self._options(run=run, benchmark=benchmark),
        )
        return base.model_copy(
            update={
                "passed": result.passed,
                "score": result.score,
                "rubric_scores": _rubric_scores(result.rubric_results),
            }
        )

    async def _load_context(
        self, run: Run, test_case_id: str
    ) -> tuple[TestCase, EvalDataset, Benchmark] | str:
        """Catalog entries for a case, or the reason they could not be found."""
        dataset = await self._catalog.get_dataset(run.dataset_id)
        if dataset is None:
            return "Dataset not found"
        benchmark = await self._catalog.get_benchmark(dataset.benchmark_id)
        if benchmark is None:
            return "Benchmark not found"
        test_case = await self._catalog.get_test_case(test_case_id)
        if test_case is None:
            return "Test case not found"
        return test_case, dataset, benchmark

    def _options(self, run: Run, benchmark: Benchmark) -> EvaluateOptions:
        return EvaluateOptions(
            extractor=benchmark.extractor,
            pass_threshold=run.config.pass_threshold,
            match_context=self._match_context,
        )


def _rubric_scores(rubric_results) -> list[RubricScore]:
    return [
        RubricScore(rubric_id=r.rubric_id, score=r.score, reason=r.reason)
        for r in rubric_results
    ]
