"""Immutable records shared by the generator, session and exporter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

OPTION_LABELS: tuple[str, ...] = ("A", "B", "C", "D")

AnswerMap = Mapping[int, str]


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question as returned by the service."""

    question_text: str
    options: tuple[str, ...]
    correct_answer: str
    solution: str

    def labelled_options(self) -> list[tuple[str, str]]:
        return list(zip(OPTION_LABELS, self.options))

    def option_for(self, label: str | None) -> str | None:
        if not label:
            return None
        for key, text in self.labelled_options():
            if key == label:
                return text
        return None


QuestionSet = Sequence[Question]


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring a submitted quiz."""

    correct_count: int
    total_questions: int
    accuracy_percent: float


def calculate_results(questions: QuestionSet, answers: AnswerMap) -> ScoreResult:
    """Score ``answers`` against ``questions`` by exact label match."""

    total = len(questions)
    if total == 0:
        raise ValueError("cannot score an empty question set")
    correct = sum(
        1
        for index, question in enumerate(questions)
        if answers.get(index) == question.correct_answer
    )
    return ScoreResult(
        correct_count=correct,
        total_questions=total,
        accuracy_percent=100 * correct / total,
    )
