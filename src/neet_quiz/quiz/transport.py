"""HTTP client for the generation service with bounded exponential backoff.

Each POST is one *attempt*. A transport error or a non-2xx status is recorded
as a failed :class:`AttemptOutcome`; the loop sleeps ``2**k * base_delay_ms``
milliseconds after failed attempt ``k`` and gives up with
:class:`TransportExhaustedError` once ``max_attempts`` have failed. The first
successful response is returned immediately.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

import httpx

from .errors import MalformedResponseError, TransportExhaustedError
from .prompt import GenerationRequest

if TYPE_CHECKING:  # pragma: no cover
    from .config import QuizConfig

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BASE_DELAY_MS",
    "AttemptOutcome",
    "GenerationClient",
    "backoff_delay",
]

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY_MS = 100

Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of a single POST: either a response or the error it raised."""

    attempt: int
    response: Optional[httpx.Response] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.error is None


def backoff_delay(
    attempt: int, base_delay_ms: int = DEFAULT_BASE_DELAY_MS
) -> float:
    """Seconds to wait after failed attempt ``attempt`` (1-indexed)."""

    return (2**attempt) * base_delay_ms / 1000


class GenerationClient:
    """Deliver :class:`GenerationRequest` payloads to ``generateContent``."""

    def __init__(
        self,
        *,
        endpoint: str,
        api_key: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        timeout: float = 120.0,
        http_client: Optional[httpx.Client] = None,
        sleep: Sleeper = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be a positive integer")
        self._endpoint = endpoint
        self._api_key = api_key
        self._max_attempts = max_attempts
        self._base_delay_ms = base_delay_ms
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: "QuizConfig", **kwargs: Any) -> "GenerationClient":
        return cls(
            endpoint=config.endpoint,
            api_key=config.api_key,
            max_attempts=config.max_attempts,
            base_delay_ms=config.base_delay_ms,
            timeout=float(config.request_timeout_seconds),
            **kwargs,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def send(self, request: GenerationRequest) -> Mapping[str, Any]:
        """POST ``request`` and return the decoded JSON envelope."""

        payload = request.to_payload()
        last: Optional[AttemptOutcome] = None
        for attempt in range(1, self._max_attempts + 1):
            last = self._attempt(payload, attempt)
            if last.ok and last.response is not None:
                return _decode(last.response)
            if attempt < self._max_attempts:
                delay = backoff_delay(attempt, self._base_delay_ms)
                self._logger.debug(
                    "Backing off before retry",
                    extra={"attempt": attempt, "delay_seconds": delay},
                )
                self._sleep(delay)

        cause = last.error if last is not None else None
        self._logger.error(
            "Generation request failed after retries",
            extra={"attempts": self._max_attempts, "last_error": repr(cause)},
        )
        raise TransportExhaustedError(
            f"API call failed after {self._max_attempts} attempts.",
            attempts=self._max_attempts,
            last_cause=cause,
        ) from cause

    def _attempt(self, payload: Mapping[str, Any], attempt: int) -> AttemptOutcome:
        try:
            response = self._http.post(
                self._endpoint,
                params={"key": self._api_key},
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            self._logger.warning(
                "Generation attempt failed",
                extra={
                    "attempt": attempt,
                    "status_code": status,
                    "error": type(exc).__name__,
                },
            )
            return AttemptOutcome(attempt=attempt, error=exc)
        self._logger.info(
            "Generation attempt succeeded",
            extra={"attempt": attempt, "status_code": response.status_code},
        )
        return AttemptOutcome(attempt=attempt, response=response)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "GenerationClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _decode(response: httpx.Response) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise MalformedResponseError("Service response is not JSON.") from exc
    if not isinstance(body, Mapping):
        raise MalformedResponseError("Service response is not a JSON object.")
    return body
