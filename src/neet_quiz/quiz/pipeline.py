"""Glue the prompt builder, transport client and parser together."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from .encoder import UploadedFile
from .errors import MalformedResponseError
from .models import Question
from .parser import parse_response
from .prompt import DEFAULT_QUESTION_COUNT, GenerationRequest, build_request

__all__ = ["RequestSender", "QuizGenerator"]


class RequestSender(Protocol):
    """Anything that can deliver a request and return the decoded envelope."""

    def send(self, request: GenerationRequest) -> Mapping[str, Any]:
        """Return the decoded response envelope for ``request``."""


class QuizGenerator:
    """Produce a question set from uploaded files in one blocking call."""

    def __init__(
        self,
        sender: RequestSender,
        *,
        default_count: int = DEFAULT_QUESTION_COUNT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._sender = sender
        self._default_count = default_count
        self._logger = logger or logging.getLogger(__name__)

    def generate(
        self,
        files: Sequence[UploadedFile],
        desired_count: Optional[int] = None,
    ) -> List[Question]:
        request = build_request(
            files,
            desired_count,
            default_count=self._default_count,
            logger=self._logger,
        )
        envelope = self._sender.send(request)
        try:
            questions = parse_response(envelope)
        except MalformedResponseError as exc:
            self._logger.error(
                "Discarding malformed generation response",
                extra={"reason": str(exc)},
            )
            raise
        if len(questions) != request.desired_count:
            self._logger.warning(
                "Service returned a different question count",
                extra={
                    "requested": request.desired_count,
                    "received": len(questions),
                },
            )
        return questions

    __call__ = generate
