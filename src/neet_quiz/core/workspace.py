"""Per-user data directory for neet-quiz.

::

    $NEET_QUIZ_DATA_HOME (default ~/.neet-quiz-data)
        config/    neet_quiz.toml
        logs/      rotating JSON logs
        exports/   neet_questions_and_solutions.{txt,csv}
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional

WORKSPACE_ENV = "NEET_QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".neet-quiz-data"

_SECTIONS = ("config", "logs", "exports")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path

    def path_for(self, section: str) -> Path:
        if section not in _SECTIONS:
            raise KeyError(f"Unknown workspace directory '{section}'.")
        return self.home / section

    def directories(self) -> Dict[str, Path]:
        return {section: self.path_for(section) for section in _SECTIONS}

    def check(self) -> None:
        """Fail if the home or one of its sections is occupied by a file."""

        for path in (self.home, *self.directories().values()):
            if path.exists() and not path.is_dir():
                raise WorkspaceError(
                    f"Workspace path exists and is not a directory: {path}"
                )

    def create(self) -> None:
        self.check()
        for path in (self.home, *self.directories().values()):
            path.mkdir(mode=0o700, parents=True, exist_ok=True)


def ensure_workspace(
    *,
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace and, unless ``create`` is false, build it.

    An explicit ``path`` beats ``NEET_QUIZ_DATA_HOME``, which beats the
    default location. Only the default location may fall back to the
    temp directory when it cannot be created.
    """

    home = _explicit_home(os.environ if env is None else env, path)
    if not create:
        layout = WorkspaceLayout(home or DEFAULT_WORKSPACE)
        layout.check()
        return layout

    failure: Optional[OSError] = None
    for candidate in _candidates(home):
        layout = WorkspaceLayout(candidate)
        try:
            layout.create()
        except OSError as exc:
            failure = exc
            continue
        return layout
    raise WorkspaceError(
        f"Unable to prepare workspace at {home or DEFAULT_WORKSPACE}"
    ) from failure


def _explicit_home(
    env: Mapping[str, str], override: Optional[Path]
) -> Optional[Path]:
    if override is not None:
        return override.expanduser().absolute()
    value = env.get(WORKSPACE_ENV, "").strip()
    return Path(value).expanduser().absolute() if value else None


def _candidates(home: Optional[Path]) -> Iterator[Path]:
    if home is not None:
        yield home
        return
    yield DEFAULT_WORKSPACE
    yield Path(tempfile.gettempdir()) / "neet-quiz-data"
