"""Reusable pytest helpers for the neet-quiz test suite."""

from .gemini import (
    ScriptedTransport,
    SleepRecorder,
    make_envelope,
    make_question_payload,
)
from .study_files import StudyFolder

__all__ = [
    "ScriptedTransport",
    "SleepRecorder",
    "make_envelope",
    "make_question_payload",
    "StudyFolder",
]
