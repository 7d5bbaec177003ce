"""Tests for rubric resolution and case evaluation against the catalog."""

from agent_eval.config.domain.run import RunConfig
from agent_eval.rubric.domain.extractor import LastLineExtractor
from agent_eval.rubric.domain.rubric import (
    ContainsRubric,
    EqualsRubric,
    NumericRubric,
)
from agent_eval.run.application.evaluation import CaseEvaluator, resolve_rubrics
from agent_eval.run.domain.catalog import Benchmark, EvalDataset
from agent_eval.run.domain.run import Run
from agent_eval.run.domain.status import RunUnitStatus
from agent_eval.run.domain.telemetry import ExecutionTelemetry
from agent_eval.run.domain.unit import RunUnit, UnitEvalResult
from tests.run.fake_catalog import FakeEvalCatalog
from tests.run.fake_clock import EPOCH
from tests.run.fake_conversations import FakeConversationStore
from tests.run.harness import (
    BENCHMARK_ID,
    DATASET_ID,
    make_catalog,
    make_test_case,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_run() -> Run:
    return Run(id="run-1", dataset_id=DATASET_ID, created_at=EPOCH)


def _make_unit(topic_id: str = "topic-1") -> RunUnit:
    return RunUnit(
        run_id="run-1",
        topic_id=topic_id,
        test_case_id="case-1",
        status=RunUnitStatus.RUNNING,
        eval_result=UnitEvalResult(operation_id="op-1", completion_reason="completed"),
        created_at=EPOCH,
    )


def _make_evaluator(
    catalog: FakeEvalCatalog, conversations: FakeConversationStore
) -> CaseEvaluator:
    return CaseEvaluator(catalog=catalog, conversations=conversations)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestResolveRubrics:
    """Test case eval mode > dataset eval mode > benchmark rubrics."""

    def test_benchmark_rubrics_by_default(self) -> None:
        benchmark = Benchmark(id=BENCHMARK_ID, rubrics=[EqualsRubric(id="eq")])
        dataset = EvalDataset(id=DATASET_ID, benchmark_id=BENCHMARK_ID)

        rubrics = resolve_rubrics(
            test_case=make_test_case("c"), dataset=dataset, benchmark=benchmark
        )

        assert [r.id for r in rubrics] == ["eq"]

    def test_dataset_eval_mode_replaces_benchmark_rubrics(self) -> None:
        benchmark = Benchmark(id=BENCHMARK_ID, rubrics=[EqualsRubric(id="eq")])
        dataset = EvalDataset(
            id=DATASET_ID,
            benchmark_id=BENCHMARK_ID,
            eval_mode="numeric",
            eval_config={"tolerance": 1},
        )

        [rubric] = resolve_rubrics(
            test_case=make_test_case("c"), dataset=dataset, benchmark=benchmark
        )

        assert isinstance(rubric, NumericRubric)
        assert rubric.config.tolerance == 1

    def test_test_case_eval_mode_wins(self) -> None:
        benchmark = Benchmark(id=BENCHMARK_ID)
        dataset = EvalDataset(id=DATASET_ID, benchmark_id=BENCHMARK_ID, eval_mode="numeric")

        [rubric] = resolve_rubrics(
            test_case=make_test_case("c", eval_mode="contains"),
            dataset=dataset,
            benchmark=benchmark,
        )

        assert isinstance(rubric, ContainsRubric)
        assert rubric.id == "eval-mode-contains"


class TestEvaluateUnit:
    async def test_keeps_existing_eval_result_fields(self) -> None:
        conversations = FakeConversationStore()
        conversations.set_output("topic-1", "It is 42")
        catalog = make_catalog(
            test_cases=[make_test_case("case-1")], rubrics=[ContainsRubric(id="c")]
        )

        patch = await _make_evaluator(catalog, conversations).evaluate_unit(
            run=_make_run(), unit=_make_unit()
        )

        assert patch is not None
        assert patch.status is RunUnitStatus.PASSED
        assert patch.eval_result is not None
        assert patch.eval_result.operation_id == "op-1"
        assert patch.eval_result.rubric_scores[0].rubric_id == "c"

    async def test_benchmark_extractor_and_run_threshold_apply(self) -> None:
        conversations = FakeConversationStore()
        conversations.set_output("topic-1", "Reasoning...\n42")
        catalog = make_catalog(
            test_cases=[make_test_case("case-1")],
            rubrics=[EqualsRubric(id="eq")],
            extractor=LastLineExtractor(),
        )
        run = _make_run().model_copy(update={"config": RunConfig(pass_threshold=1.0)})

        patch = await _make_evaluator(catalog, conversations).evaluate_unit(
            run=run, unit=_make_unit()
        )

        assert patch is not None
        assert patch.passed is True
        assert patch.score == 1.0

    async def test_missing_catalog_entry_returns_none(self) -> None:
        conversations = FakeConversationStore()
        conversations.set_output("topic-1", "42")
        catalog = FakeEvalCatalog()

        patch = await _make_evaluator(catalog, conversations).evaluate_unit(
            run=_make_run(), unit=_make_unit()
        )

        assert patch is None


class TestEvaluateThread:
    async def test_thread_telemetry_is_carried(self) -> None:
        conversations = FakeConversationStore()
        conversations.set_output("topic-1", "42", thread_id="th-1")
        catalog = make_catalog(
            test_cases=[make_test_case("case-1")], rubrics=[ContainsRubric(id="c")]
        )

        result = await _make_evaluator(catalog, conversations).evaluate_thread(
            run=_make_run(),
            test_case_id="case-1",
            topic_id="topic-1",
            thread_id="th-1",
            status="completed",
            telemetry=ExecutionTelemetry(cost=0.25, total_tokens=80, steps=2),
        )

        assert result.passed is True
        assert result.cost == 0.25
        assert result.tokens == 80
        assert result.steps == 2

    async def test_missing_dataset_reason(self) -> None:
        result = await _make_evaluator(
            FakeEvalCatalog(), FakeConversationStore()
        ).evaluate_thread(
            run=_make_run(),
            test_case_id="case-1",
            topic_id="topic-1",
            thread_id="th-1",
            status="completed",
            telemetry=ExecutionTelemetry(),
        )

        assert result.passed is False
        assert result.error == "Dataset not found"

    async def test_error_without_details(self) -> None:
        result = await _make_evaluator(
            FakeEvalCatalog(), FakeConversationStore()
        ).evaluate_thread(
            run=_make_run(),
            test_case_id="case-1",
            topic_id="topic-1",
            thread_id="th-1",
            status="error",
            telemetry=ExecutionTelemetry(),
        )

        assert result.error == "Execution error: unknown"
