"""Session lifecycle: Idle -> Loading -> Answering -> Scored (or Error).

Each state is an immutable record and the machine swaps one for another, so a
session can never be "loading" and "scored" at the same time. Generation
requests are numbered; a result whose number is not the one currently loading
is stale and gets dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Union

from .encoder import UploadedFile
from .errors import EmptyInputError, MalformedResponseError, QuizStateError
from .models import OPTION_LABELS, Question, ScoreResult, calculate_results

__all__ = [
    "ERROR_MESSAGE",
    "Idle",
    "Loading",
    "Error",
    "Answering",
    "Scored",
    "SessionState",
    "QuizStateMachine",
]

ERROR_MESSAGE = (
    "Failed to generate questions. Please try again. "
    "Ensure files contain relevant text/images."
)

GenerateFn = Callable[[Sequence[UploadedFile], Optional[int]], Sequence[Question]]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    generation_id: int


@dataclass(frozen=True)
class Error:
    message: str
    cause: Optional[BaseException] = field(default=None, compare=False)


@dataclass(frozen=True)
class Answering:
    questions: tuple[Question, ...]
    answers: Mapping[int, str]


@dataclass(frozen=True)
class Scored:
    questions: tuple[Question, ...]
    answers: Mapping[int, str]
    score: ScoreResult


SessionState = Union[Idle, Loading, Error, Answering, Scored]


class QuizStateMachine:
    """Hold one session's state and apply the allowed transitions."""

    def __init__(
        self,
        generate: Optional[GenerateFn] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._generate = generate
        self._logger = logger or logging.getLogger(__name__)
        self._state: SessionState = Idle()
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    def submit(
        self,
        files: Sequence[UploadedFile],
        desired_count: Optional[int] = None,
    ) -> SessionState:
        """Run a full generation synchronously and return the new state."""

        ticket = self.begin(files)
        if ticket is None:
            return self._state
        if self._generate is None:
            raise QuizStateError("No question generator configured.")
        try:
            questions = self._generate(files, desired_count)
        except Exception as exc:
            self.fail(ticket, exc)
        else:
            self.complete(ticket, questions)
        return self._state

    def begin(self, files: Sequence[UploadedFile]) -> Optional[int]:
        """Enter ``Loading`` and return the generation id to resolve later.

        Allowed from every state. An empty file list goes straight to
        ``Error`` and returns ``None``.
        """

        if not files:
            self._transition(
                Error(ERROR_MESSAGE, EmptyInputError("No files selected.")),
            )
            return None
        self._generation += 1
        self._transition(Loading(self._generation))
        return self._generation

    def complete(self, generation_id: int, questions: Sequence[Question]) -> bool:
        """Apply a successful generation; ``False`` when it is stale."""

        if not self._is_current(generation_id):
            return False
        if not questions:
            return self.fail(
                generation_id, MalformedResponseError("No questions returned.")
            )
        self._transition(Answering(tuple(questions), MappingProxyType({})))
        return True

    def fail(self, generation_id: int, error: BaseException) -> bool:
        """Apply a failed generation; ``False`` when it is stale."""

        if not self._is_current(generation_id):
            return False
        self._logger.error(
            "Question generation failed",
            extra={
                "generation_id": generation_id,
                "error": type(error).__name__,
                "detail": str(error),
            },
            exc_info=error,
        )
        self._transition(Error(ERROR_MESSAGE, error))
        return True

    def select_answer(self, index: int, label: str) -> None:
        state = self._require(Answering, "select an answer")
        if not 0 <= index < len(state.questions):
            raise IndexError(
                f"question index {index} out of range "
                f"(0..{len(state.questions) - 1})"
            )
        normalized = str(label).strip().upper()
        if normalized not in OPTION_LABELS:
            raise ValueError(f"unknown option label {label!r}")
        answers = dict(state.answers)
        answers[index] = normalized
        self._state = Answering(state.questions, MappingProxyType(answers))

    def submit_quiz(self) -> Scored:
        state = self._require(Answering, "submit the quiz")
        score = calculate_results(state.questions, state.answers)
        scored = Scored(state.questions, state.answers, score)
        self._transition(scored)
        return scored

    def _is_current(self, generation_id: int) -> bool:
        state = self._state
        if isinstance(state, Loading) and state.generation_id == generation_id:
            return True
        self._logger.info(
            "Discarding stale generation result",
            extra={
                "generation_id": generation_id,
                "current_state": type(state).__name__,
            },
        )
        return False

    def _require(self, kind: type, action: str):
        if not isinstance(self._state, kind):
            raise QuizStateError(
                f"Cannot {action} while {type(self._state).__name__.lower()}."
            )
        return self._state

    def _transition(self, new_state: SessionState) -> None:
        self._logger.debug(
            "Session state change",
            extra={
                "from_state": type(self._state).__name__,
                "to_state": type(new_state).__name__,
            },
        )
        self._state = new_state
