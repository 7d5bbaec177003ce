"""CLI entrypoint for agent-eval — typer app with a `score` command."""

import asyncio
import json
import sys
import time
from datetime import datetime
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from agent_eval.cli.output.report import build_report, summarize
from agent_eval.config.domain.config import EvalConfig
from agent_eval.config.infrastructure.observer import StructlogConfigObserver
from agent_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from agent_eval.core.errors import AgentEvalError
from agent_eval.dataset.infrastructure.jsonl_loader import JsonlDatasetLoader
from agent_eval.dataset.infrastructure.observer import StructlogDatasetObserver
from agent_eval.judge.infrastructure.litellm import LiteLLMJudge
from agent_eval.judge.infrastructure.observer import StructlogJudgeObserver
from agent_eval.rubric.domain.context import MatchContext
from agent_eval.scoring.application.runner import ScoringRunner
from agent_eval.scoring.domain.observer import ScoringObserver
from agent_eval.scoring.domain.summary import ScoringSummary
from agent_eval.scoring.infrastructure.composite_observer import (
    CompositeScoringObserver,
)
from agent_eval.scoring.infrastructure.observer import StructlogScoringObserver
from agent_eval.scoring.infrastructure.progress_observer import (
    ProgressScoringObserver,
)

app = typer.Typer(add_completion=False)


@app.callback()
def main() -> None:
    """agent-eval — score recorded agent outputs against rubrics."""


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _output_stem(config_name: str, run_id: str) -> str:
    """Build the output file stem: {config_name}_{YYYYMMDD}_{short_run_id}."""
    date_str = datetime.now().strftime("%Y%m%d")
    return f"{config_name}_{date_str}_{run_id[:8]}"


def _match_context(config: EvalConfig) -> MatchContext:
    if config.judge is None:
        return MatchContext()
    judge = LiteLLMJudge(config=config.judge, observer=StructlogJudgeObserver())
    return MatchContext(judge=judge, judge_model=config.judge.model)


def _format_elapsed(elapsed_seconds: float) -> str:
    """Format elapsed seconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{elapsed_seconds:.1f}s"


def _score_style(score: float) -> str:
    if score >= 0.8:
        return "green"
    if score >= 0.5:
        return "yellow"
    return "red"


def _print_summary(
    summary: ScoringSummary,
    report_path: Path,
    elapsed_seconds: float,
) -> None:
    stats = summarize(summary.verdicts)
    console = Console()

    meta = Table.grid(padding=(0, 2))
    meta.add_column(style="dim")
    meta.add_column()
    meta.add_row("Run ID", f"{summary.run_id[:8]}-...")
    meta.add_row("Config", summary.config_name)
    meta.add_row("Dataset SHA256", f"{summary.dataset_sha256[:16]}...")
    meta.add_row("Samples", str(stats.total))
    meta.add_row("Elapsed", _format_elapsed(elapsed_seconds=elapsed_seconds))
    meta.add_row("Report", str(report_path))

    results = Table(title="Results", title_style="bold cyan")
    results.add_column("Metric")
    results.add_column("Value", justify="right")
    results.add_row("Passed", f"{stats.passed}/{stats.total}")
    results.add_row(
        "Pass rate",
        f"[{_score_style(stats.pass_rate)}]{stats.pass_rate:.1%}[/]",
    )
    results.add_row(
        "Average score",
        f"[{_score_style(stats.average_score)}]{stats.average_score:.3f}[/]",
    )
    for rubric_id, score in sorted(stats.rubric_scores.items()):
        results.add_row(f"  {rubric_id}", f"[{_score_style(score)}]{score:.3f}[/]")

    console.print()
    console.rule("[bold cyan]agent-eval  ·  Scoring Complete")
    console.print(meta)
    console.print()
    console.print(results)
    console.rule(style="cyan")


@app.command()
def score(
    config_path: Path = typer.Argument(..., help="Path to scoring config YAML"),
    output_dir: Path = typer.Option(
        Path("./results"),
        "--output-dir",
        "-o",
        help="Directory for output files",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Score the recorded outputs of a JSONL dataset from a YAML config file."""
    try:
        _configure_structlog(log_format=log_format)

        loader = YamlConfigLoader(observer=StructlogConfigObserver())
        try:
            config = loader.load(path=config_path)
        except AgentEvalError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=1) from exc

        output_dir.mkdir(parents=True, exist_ok=True)

        observers: list[ScoringObserver] = [StructlogScoringObserver()]
        if log_format != "json":
            observers.append(ProgressScoringObserver())

        runner = ScoringRunner(
            config=config,
            dataset_loader=JsonlDatasetLoader(observer=StructlogDatasetObserver()),
            observer=CompositeScoringObserver(observers=observers),
            match_context=_match_context(config=config),
        )

        started_at = time.monotonic()
        summary = asyncio.run(runner.run())
        elapsed_seconds = time.monotonic() - started_at

        report_path = output_dir / (
            _output_stem(config_name=summary.config_name, run_id=summary.run_id)
            + ".json"
        )
        report_path.write_text(
            json.dumps(build_report(summary=summary, config=config), indent=2),
            encoding="utf-8",
        )

        _print_summary(
            summary=summary,
            report_path=report_path,
            elapsed_seconds=elapsed_seconds,
        )

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("Scoring interrupted.")
        sys.exit(1)
    except AgentEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


if __name__ == "__main__":
    app()
