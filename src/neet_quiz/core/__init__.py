"""Shared helpers for neet-quiz: TOML config, logging and workspace."""

from __future__ import annotations

from .config import (
    TomlConfigError,
    load_toml,
    merged_with_defaults,
    write_toml_template,
)
from .logging import JsonLogFormatter, SecretFilter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merged_with_defaults",
    "write_toml_template",
    "JsonLogFormatter",
    "SecretFilter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
