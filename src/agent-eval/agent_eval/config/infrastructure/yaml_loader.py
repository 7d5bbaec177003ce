"""YAML config loader — parses, interpolates env vars, validates, and emits observer events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from agent_eval.config.domain.config import EvalConfig
from agent_eval.config.domain.observer import ConfigObserver
from agent_eval.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from agent_eval.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from agent_eval.rubric.domain.rubric import LlmRubric


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an EvalConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> EvalConfig:
        """
        Load, interpolate, validate, and return an EvalConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated, rubric ids repeat, or an
                llm-rubric has no model to run on.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        interpolated = interpolate(raw)
        cfg = _build_config(resolved=interpolated)
        _check_rubrics(cfg=cfg)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(name=cfg.name, version=cfg.version)
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason="invalid YAML") from exc


def _check_missing_env_vars(raw: Any) -> None:
    """Raise MissingEnvVarsError if any ${ENV_VAR} references in raw are unset."""
    missing = collect_missing_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing)


def _build_config(resolved: Any) -> EvalConfig:
    if not isinstance(resolved, dict):
        raise ConfigValidationError("config root must be a mapping")
    try:
        return EvalConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _check_rubrics(cfg: EvalConfig) -> None:
    """
    Validate cross-rubric constraints.

    Raises:
        ConfigValidationError: listing ALL problems across ALL rubrics before
            raising (not just the first one).
    """
    problems: list[str] = []
    seen: set[str] = set()
    for rubric in cfg.rubrics:
        if rubric.id in seen:
            problems.append(f"duplicate rubric id '{rubric.id}'")
        seen.add(rubric.id)

        if isinstance(rubric, LlmRubric) and not rubric.config.model and cfg.judge is None:
            problems.append(
                f"rubric '{rubric.id}' is an llm-rubric but no judge model is configured"
            )

    if problems:
        raise ConfigValidationError("; ".join(problems))


def _emit_warnings(cfg: EvalConfig, observer: ConfigObserver) -> None:
    if cfg.judge is not None and cfg.judge.temperature > 0.0:
        observer.config_judge_temperature_warning(cfg.judge.temperature)
    if cfg.rubrics and all(rubric.weight == 0 for rubric in cfg.rubrics):
        observer.config_zero_weight_warning(len(cfg.rubrics))
