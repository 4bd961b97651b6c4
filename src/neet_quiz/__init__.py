"""Generate, take and export NEET-level quizzes built from study files."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
