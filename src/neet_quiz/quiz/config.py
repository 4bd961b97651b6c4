"""Configuration loader for quiz generation.

Values resolve with the precedence CLI overrides > environment > TOML file >
packaged defaults. The access credential is read from ``GEMINI_API_KEY`` (a
``.env`` file is honoured through python-dotenv) unless the TOML file or an
override provides one.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from neet_quiz.core import config as core_config
from neet_quiz.core import workspace as workspace_mod

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_ENV",
    "API_KEY_ENV",
    "QuizConfigError",
    "QuizConfig",
    "ConfigOverrides",
    "LoadResult",
    "load_config",
    "config_template",
    "write_template",
]

CONFIG_FILENAME = "neet_quiz.toml"
CONFIG_ENV = "NEET_QUIZ_CONFIG"
API_KEY_ENV = "GEMINI_API_KEY"
ENV_PREFIX = "NEET_QUIZ_"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "service": {
        "api_base": "https://generativelanguage.googleapis.com/v1beta",
        "model": "gemini-2.5-flash",
        "api_key": None,
        "request_timeout_seconds": 120,
    },
    "retry": {
        "max_attempts": 5,
        "base_delay_ms": 100,
    },
    "quiz": {
        "default_count": 10,
    },
    "paths": {
        "export_dir": None,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    api_base: str
    model: str
    api_key: str
    request_timeout_seconds: int
    max_attempts: int
    base_delay_ms: int
    default_count: int
    export_dir: Path
    log_level: str
    verbose: bool

    @property
    def endpoint(self) -> str:
        return f"{self.api_base.rstrip('/')}/models/{self.model}:generateContent"


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced values applied on top of environment and file options."""

    api_base: Optional[str] = None
    model: Optional[str] = None
    export_dir: Optional[Path] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv()
        env = os.environ

    layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    requested = _resolve_config_path(
        config_path, env, layout.path_for("config") / CONFIG_FILENAME
    )

    explicit = (
        config_path is not None
        or _env_value(env, CONFIG_ENV, bare=True) is not None
    )
    try:
        document = core_config.load_toml(requested, missing_ok=not explicit)
        tree = core_config.merged_with_defaults(_DEFAULTS, document or {})
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc
    loaded_path = requested if document is not None else None

    service = tree["service"]
    api_key = _pick_first(
        _env_value(env, API_KEY_ENV, bare=True),
        _env_value(env, "API_KEY"),
        service["api_key"],
    )
    if not isinstance(api_key, str) or not api_key.strip():
        raise QuizConfigError(
            f"{API_KEY_ENV} not found in environment. Set it, add it to .env "
            "or set service.api_key in the config file."
        )

    config = QuizConfig(
        api_base=_require_string(
            _pick_first(
                overrides.api_base,
                _env_value(env, "API_BASE"),
                service["api_base"],
            ),
            field="service.api_base",
        ),
        model=_require_string(
            _pick_first(
                overrides.model, _env_value(env, "MODEL"), service["model"]
            ),
            field="service.model",
        ),
        api_key=api_key.strip(),
        request_timeout_seconds=_require_positive_int(
            service["request_timeout_seconds"],
            field="service.request_timeout_seconds",
        ),
        max_attempts=_require_positive_int(
            tree["retry"]["max_attempts"], field="retry.max_attempts"
        ),
        base_delay_ms=_require_non_negative_int(
            tree["retry"]["base_delay_ms"], field="retry.base_delay_ms"
        ),
        default_count=_require_positive_int(
            tree["quiz"]["default_count"], field="quiz.default_count"
        ),
        export_dir=_resolve_export_dir(
            _pick_first(
                overrides.export_dir,
                _env_value(env, "EXPORT_DIR"),
                tree["paths"]["export_dir"],
            ),
            layout,
        ),
        log_level=_resolve_log_level(
            _pick_first(
                overrides.log_level,
                _env_value(env, "LOG_LEVEL"),
                tree["logging"]["level"],
            )
        ),
        verbose=_require_bool(
            _pick_first(overrides.verbose, tree["logging"]["verbose"]),
            field="logging.verbose",
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def config_template() -> str:
    """Return the packaged TOML template."""

    resource = resources.files("neet_quiz.quiz").joinpath(CONFIG_FILENAME)
    return resource.read_text(encoding="utf-8")


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, config_template(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc


def _resolve_config_path(
    explicit: Optional[Path], env: Mapping[str, str], default: Path
) -> Path:
    if explicit is not None:
        return explicit.expanduser()
    from_env = _env_value(env, CONFIG_ENV, bare=True)
    if from_env:
        return Path(from_env).expanduser()
    return default


def _env_value(
    env: Mapping[str, str], key: str, *, bare: bool = False
) -> Optional[str]:
    name = key if bare else f"{ENV_PREFIX}{key}"
    raw = env.get(name)
    if raw is None:
        return None
    return raw.strip() or None


def _resolve_export_dir(
    value: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if value is None:
        return layout.path_for("exports")
    if not isinstance(value, (str, Path)) or not str(value).strip():
        raise QuizConfigError("paths.export_dir must be a non-empty string.")
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()


def _resolve_log_level(value: object) -> str:
    level = _require_string(value, field="logging.level").upper()
    if level not in _LOG_LEVELS:
        raise QuizConfigError(
            "logging.level must be one of DEBUG, INFO, WARNING, ERROR, "
            "CRITICAL."
        )
    return level


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_non_negative_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QuizConfigError(f"'{field}' must be a non-negative integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise QuizConfigError(f"'{field}' must be a boolean.")
    return value


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
