"""Render a question set as downloadable text (plain text or CSV)."""

from __future__ import annotations

import csv
import io
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .models import AnswerMap, QuestionSet

__all__ = [
    "ExportFormat",
    "render_export",
    "to_csv",
    "to_plain_text",
    "write_export",
]

_BASENAME = "neet_questions_and_solutions"


class ExportFormat(Enum):
    TXT = "txt"
    CSV = "csv"

    @property
    def filename(self) -> str:
        return f"{_BASENAME}.{self.value}"

    @property
    def media_type(self) -> str:
        if self is ExportFormat.CSV:
            return "text/csv;charset=utf-8"
        return "text/plain;charset=utf-8"

    @classmethod
    def from_value(cls, value: str) -> "ExportFormat":
        normalized = value.strip().lower().lstrip(".")
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown export format '{value}'. Expected one of: {expected}."
        )


def to_plain_text(
    questions: QuestionSet, answers: Optional[AnswerMap] = None
) -> str:
    """One block per question, blocks separated by a blank line."""

    blocks: list[str] = []
    for index, question in enumerate(questions):
        lines = [f"Question {index + 1}: {question.question_text}"]
        lines.extend(
            f"  {label}. {text}" for label, text in question.labelled_options()
        )
        if answers is not None:
            lines.append(f"Your Answer: {answers.get(index) or 'Not answered'}")
        lines.append(f"Correct Answer: {question.correct_answer}")
        lines.append(f"Solution: {question.solution}")
        blocks.append("\n".join(lines) + "\n\n")
    return "".join(blocks)


def to_csv(questions: QuestionSet) -> str:
    """Header plus one fully-quoted row per question; quotes are doubled."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Question", "Correct Answer", "Solution"])
    for question in questions:
        writer.writerow(
            [question.question_text, question.correct_answer, question.solution]
        )
    return buffer.getvalue()


def render_export(
    questions: QuestionSet,
    fmt: ExportFormat,
    answers: Optional[AnswerMap] = None,
) -> str:
    if fmt is ExportFormat.CSV:
        return to_csv(questions)
    return to_plain_text(questions, answers)


def write_export(
    questions: QuestionSet,
    fmt: ExportFormat,
    output_dir: Path,
    *,
    answers: Optional[AnswerMap] = None,
    logger: Optional[logging.Logger] = None,
) -> Path:
    """Write the export under its fixed file name and return the path."""

    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / fmt.filename
    target.write_text(render_export(questions, fmt, answers), encoding="utf-8")
    (logger or logging.getLogger(__name__)).info(
        "Wrote quiz export",
        extra={
            "format": fmt.value,
            "path": str(target),
            "question_count": len(questions),
        },
    )
    return target
