"""Configuration loader for assessment runs."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from competency_assessment.core import config as core_config

from .models import DEFAULT_DISTRIBUTION, Difficulty

__all__ = [
    "AIConfig",
    "AssessmentConfig",
    "AssessmentConfigError",
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "ConfigOverrides",
    "GenerationConfig",
    "LoadResult",
    "LoggingConfig",
    "ScoringConfig",
    "load_config",
]

CONFIG_FILENAME = "assessment.toml"
CONFIG_ENV = "ASSESSMENT_CONFIG"
ENV_PREFIX = "ASSESSMENT_"

_DEFAULTS: Dict[str, Any] = {
    "generation": {
        "desired_count": 15,
        "use_ai": True,
        "distribution": {
            difficulty.value: count
            for difficulty, count in DEFAULT_DISTRIBUTION.items()
        },
    },
    "ai": {
        "model": "gpt-4-turbo",
        "temperature": 0.7,
        "max_tokens": 4000,
        "reshuffle_probability": 0.5,
    },
    "scoring": {"pass_threshold": 70},
    "logging": {
        "level": "INFO",
        "verbose": False,
        "log_dir": "~/.competency-assessment/logs",
    },
}


class AssessmentConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class GenerationConfig:
    desired_count: int
    use_ai: bool
    distribution: Mapping[Difficulty, int]


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_tokens: int
    reshuffle_probability: float


@dataclass(frozen=True)
class ScoringConfig:
    pass_threshold: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool
    log_dir: Path


@dataclass(frozen=True)
class AssessmentConfig:
    generation: GenerationConfig
    ai: AIConfig
    scoring: ScoringConfig
    logging: LoggingConfig


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    desired_count: Optional[int] = None
    use_ai: Optional[bool] = None
    model: Optional[str] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: AssessmentConfig
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    Without ``config_path`` or ``ASSESSMENT_CONFIG`` the loader looks for
    ``assessment.toml`` in ``cwd`` and silently falls back to defaults when
    it is missing. An explicitly requested file must exist.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env
    table: MutableMapping[str, Any] = copy.deepcopy(_DEFAULTS)

    requested, explicit = _resolve_config_path(config_path, env_map, cwd)
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_toml_file(table, requested)
        except core_config.TomlConfigError as exc:
            raise AssessmentConfigError(str(exc)) from exc
        loaded_path = requested
    elif explicit:
        raise AssessmentConfigError(f"Config file not found: {requested}")

    _apply_env(table, env_map)
    _apply_overrides(table, overrides)
    return LoadResult(config=_build_config(table), config_path=loaded_path)


def _resolve_config_path(
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    cwd: Optional[Path],
) -> tuple[Path, bool]:
    if config_path is not None:
        return config_path.expanduser(), True
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser(), True
    return (cwd or Path.cwd()) / CONFIG_FILENAME, False


def _apply_env(table: MutableMapping[str, Any], env_map: Mapping[str, str]) -> None:
    count = _env_string(env_map, "DESIRED_COUNT")
    if count is not None:
        try:
            table["generation"]["desired_count"] = int(count)
        except ValueError as exc:
            raise AssessmentConfigError(
                f"{ENV_PREFIX}DESIRED_COUNT must be an integer."
            ) from exc
    use_ai = _env_string(env_map, "USE_AI")
    if use_ai is not None:
        table["generation"]["use_ai"] = _parse_bool(
            use_ai, field=f"{ENV_PREFIX}USE_AI"
        )
    model = _env_string(env_map, "MODEL")
    if model is not None:
        table["ai"]["model"] = model
    level = _env_string(env_map, "LOG_LEVEL")
    if level is not None:
        table["logging"]["level"] = level


def _apply_overrides(
    table: MutableMapping[str, Any], overrides: ConfigOverrides
) -> None:
    if overrides.desired_count is not None:
        table["generation"]["desired_count"] = overrides.desired_count
    if overrides.use_ai is not None:
        table["generation"]["use_ai"] = overrides.use_ai
    if overrides.model is not None:
        table["ai"]["model"] = overrides.model
    if overrides.log_level is not None:
        table["logging"]["level"] = overrides.log_level
    if overrides.verbose is not None:
        table["logging"]["verbose"] = overrides.verbose


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_bool(value: str, *, field: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise AssessmentConfigError(f"'{field}' must be a boolean.")


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise AssessmentConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_non_negative_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise AssessmentConfigError(f"'{field}' must be a non-negative integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise AssessmentConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AssessmentConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not min_value <= number <= max_value:
        raise AssessmentConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise AssessmentConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _build_generation(section: Mapping[str, Any]) -> GenerationConfig:
    raw = section["distribution"]
    distribution = {
        difficulty: _require_non_negative_int(
            raw[difficulty.value],
            field=f"generation.distribution.{difficulty.value}",
        )
        for difficulty in Difficulty
    }
    if sum(distribution.values()) == 0:
        raise AssessmentConfigError(
            "'generation.distribution' must request at least one question."
        )
    return GenerationConfig(
        desired_count=_require_positive_int(
            section["desired_count"], field="generation.desired_count"
        ),
        use_ai=_require_bool(section["use_ai"], field="generation.use_ai"),
        distribution=distribution,
    )


def _build_ai(section: Mapping[str, Any]) -> AIConfig:
    return AIConfig(
        model=_require_string(section["model"], field="ai.model"),
        temperature=_require_float_range(
            section["temperature"],
            field="ai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=_require_positive_int(
            section["max_tokens"], field="ai.max_tokens"
        ),
        reshuffle_probability=_require_float_range(
            section["reshuffle_probability"],
            field="ai.reshuffle_probability",
            min_value=0.0,
            max_value=1.0,
        ),
    )


def _build_scoring(section: Mapping[str, Any]) -> ScoringConfig:
    threshold = _require_non_negative_int(
        section["pass_threshold"], field="scoring.pass_threshold"
    )
    if threshold > 100:
        raise AssessmentConfigError(
            "'scoring.pass_threshold' must be between 0 and 100."
        )
    return ScoringConfig(pass_threshold=threshold)


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    return LoggingConfig(
        level=_require_string(section["level"], field="logging.level").upper(),
        verbose=_require_bool(section["verbose"], field="logging.verbose"),
        log_dir=Path(
            _require_string(section["log_dir"], field="logging.log_dir")
        ).expanduser(),
    )


def _build_config(table: Mapping[str, Any]) -> AssessmentConfig:
    return AssessmentConfig(
        generation=_build_generation(table["generation"]),
        ai=_build_ai(table["ai"]),
        scoring=_build_scoring(table["scoring"]),
        logging=_build_logging(table["logging"]),
    )
