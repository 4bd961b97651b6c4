"""TOML file handling for neet-quiz configuration."""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merged_with_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """A TOML file is missing, unreadable, malformed or has unknown keys."""


def load_toml(
    path: Path, *, missing_ok: bool = False
) -> Optional[Dict[str, Any]]:
    """Parse ``path``; with ``missing_ok`` an absent file yields ``None``."""

    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        if missing_ok:
            return None
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise TomlConfigError(f"Unable to read {path}: {exc}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(f"Invalid TOML in {path}: {exc}") from exc


def merged_with_defaults(
    defaults: Mapping[str, Any],
    override: Mapping[str, Any],
    *,
    section: str = "",
) -> Dict[str, Any]:
    """Return a copy of ``defaults`` with ``override`` applied table by table.

    Keys absent from ``defaults`` are rejected, as is a scalar given where
    ``defaults`` holds a table. ``defaults`` itself is left untouched.
    """

    merged = copy.deepcopy(dict(defaults))
    for key, value in override.items():
        name = f"{section}.{key}" if section else key
        if key not in merged:
            raise TomlConfigError(f"Unknown configuration key '{name}'.")
        if isinstance(merged[key], Mapping):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"'{name}' must be a table, not {type(value).__name__}."
                )
            merged[key] = merged_with_defaults(merged[key], value, section=name)
        else:
            merged[key] = value
    return merged


def write_toml_template(
    path: Path,
    template: str,
    *,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Create ``path`` from ``template`` and restrict it to ``mode``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("w" if overwrite else "x", encoding="utf-8") as handle:
            handle.write(template)
    except FileExistsError as exc:
        raise TomlConfigError(
            f"Config already exists: {path} (use --force to replace it)"
        ) from exc
    path.chmod(mode)
    return path
