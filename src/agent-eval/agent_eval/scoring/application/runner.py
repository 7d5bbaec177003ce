"""ScoringRunner — scores every recorded agent output of a dataset."""

import asyncio
import time
import uuid

from agent_eval.config.domain.config import EvalConfig
from agent_eval.dataset.domain.loader import DatasetLoader
from agent_eval.dataset.domain.sample import Sample
from agent_eval.rubric.application.evaluate import EvaluateOptions, evaluate
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.scoring.domain.observer import ScoringObserver
from agent_eval.scoring.domain.summary import SampleVerdict, ScoringSummary


class ScoringRunner:
    """Runs the evaluation orchestrator over every sample, bounded by max_concurrent.

    The runner only sees ports: the dataset loader, the observer and the
    judge inside match_context can all be replaced in tests.
    """

    def __init__(
        self,
        config: EvalConfig,
        dataset_loader: DatasetLoader,
        observer: ScoringObserver,
        match_context: MatchContext | None = None,
    ) -> None:
        self._config = config
        self._dataset_loader = dataset_loader
        self._observer = observer
        self._options = EvaluateOptions(
            extractor=config.extractor,
            pass_threshold=config.pass_threshold,
            match_context=match_context or MatchContext(),
        )

    async def run(self) -> ScoringSummary:
        run_id = str(uuid.uuid4())
        load_result = self._dataset_loader.load(config=self._config.dataset)
        samples = load_result.samples

        self._observer.scoring_started(
            run_id=run_id,
            total_samples=len(samples),
            max_concurrent=self._config.max_concurrent,
        )
        started_at = time.monotonic()

        verdicts: dict[int, SampleVerdict] = {}
        sem = asyncio.Semaphore(self._config.max_concurrent)
        progress_lock = asyncio.Lock()

        async def score_one(position: int, sample: Sample) -> None:
            async with sem:
                result = await evaluate(
                    actual=sample.output,
                    rubrics=self._config.rubrics,
                    test_case=sample.content,
                    options=self._options,
                )
            self._observer.sample_scored(
                run_id=run_id,
                sample_idx=sample.sample_idx,
                passed=result.passed,
                score=result.score,
            )
            async with progress_lock:
                verdicts[position] = SampleVerdict(sample=sample, result=result)
                self._observer.scoring_progress(
                    run_id=run_id, completed=len(verdicts), total=len(samples)
                )

        async with asyncio.TaskGroup() as tg:
            for position, sample in enumerate(samples):
                tg.create_task(score_one(position=position, sample=sample))

        self._observer.scoring_completed(
            run_id=run_id,
            total_samples=len(samples),
            elapsed_seconds=time.monotonic() - started_at,
        )
        return ScoringSummary(
            run_id=run_id,
            dataset_sha256=load_result.sha256,
            config_name=self._config.name,
            verdicts=[verdicts[position] for position in sorted(verdicts)],
        )
