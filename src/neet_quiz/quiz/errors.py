"""Exception types raised by the quiz generation pipeline."""

from __future__ import annotations

__all__ = [
    "QuizGenerationError",
    "EmptyInputError",
    "EncodingError",
    "TransportExhaustedError",
    "MalformedResponseError",
    "QuizStateError",
]


class QuizGenerationError(RuntimeError):
    """Base class for failures that end a generation attempt."""


class EmptyInputError(QuizGenerationError):
    """No files were supplied for generation."""


class EncodingError(QuizGenerationError):
    """An uploaded file could not be read for encoding."""


class TransportExhaustedError(QuizGenerationError):
    """Every attempt to reach the generation service failed."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        last_cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_cause = last_cause


class MalformedResponseError(QuizGenerationError):
    """The service response did not contain a usable question set."""


class QuizStateError(RuntimeError):
    """An operation was invoked in a session state that does not allow it."""
