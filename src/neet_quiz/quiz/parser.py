"""Validate the service envelope and decode it into :class:`Question` records.

The schema-constrained output is treated as untrusted: every field is checked
for presence and type, and any malformed question rejects the whole batch.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Mapping, Union

from .errors import MalformedResponseError
from .models import OPTION_LABELS, Question

__all__ = ["extract_fragment", "parse_questions", "parse_response"]

_REQUIRED_TEXT_FIELDS = ("questionText", "correctAnswer", "solution")
_LABELLED_ANSWER = re.compile(r"^\(?([A-Da-d])[.):]\s*(.*)$", re.DOTALL)


def extract_fragment(envelope: Mapping[str, Any]) -> str:
    """Return ``candidates[0].content.parts[0].text`` or raise."""

    try:
        text = envelope["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(
            "Response is missing candidates[0].content.parts[0].text."
        ) from exc
    if not isinstance(text, str) or not text.strip():
        raise MalformedResponseError("Generated text fragment is empty.")
    return text


def parse_response(
    body: Union[Mapping[str, Any], str, bytes],
) -> List[Question]:
    """Decode a raw response body (JSON text or decoded mapping)."""

    envelope: Any = body
    if isinstance(body, (str, bytes)):
        try:
            envelope = json.loads(body)
        except ValueError as exc:
            raise MalformedResponseError("Response body is not JSON.") from exc
    if not isinstance(envelope, Mapping):
        raise MalformedResponseError("Response body is not a JSON object.")

    fragment = extract_fragment(envelope)
    try:
        payload = json.loads(fragment)
    except ValueError as exc:
        raise MalformedResponseError(
            "Generated text is not valid JSON."
        ) from exc
    return parse_questions(payload)


def parse_questions(payload: Any) -> List[Question]:
    if not isinstance(payload, Mapping):
        raise MalformedResponseError("Generated JSON must be an object.")
    raw_questions = payload.get("questions")
    if not isinstance(raw_questions, list):
        raise MalformedResponseError("'questions' must be an array.")
    if not raw_questions:
        raise MalformedResponseError("'questions' array is empty.")
    return [
        _build_question(item, index) for index, item in enumerate(raw_questions)
    ]


def _build_question(item: Any, index: int) -> Question:
    where = f"questions[{index}]"
    if not isinstance(item, Mapping):
        raise MalformedResponseError(f"{where} must be an object.")
    for field in _REQUIRED_TEXT_FIELDS:
        value = item.get(field)
        if not isinstance(value, str) or not value.strip():
            raise MalformedResponseError(
                f"{where}.{field} must be a non-empty string."
            )
    options = item.get("options")
    if not isinstance(options, list) or not all(
        isinstance(option, str) for option in options
    ):
        raise MalformedResponseError(f"{where}.options must be strings.")
    if len(options) != len(OPTION_LABELS):
        raise MalformedResponseError(
            f"{where}.options must contain exactly {len(OPTION_LABELS)} "
            f"entries, got {len(options)}."
        )
    answer = _resolve_answer(item["correctAnswer"], options)
    if answer is None:
        raise MalformedResponseError(
            f"{where}.correctAnswer does not name one of the options."
        )
    return Question(
        question_text=item["questionText"].strip(),
        options=tuple(option.strip() for option in options),
        correct_answer=answer,
        solution=item["solution"].strip(),
    )


def _resolve_answer(raw: str, options: List[str]) -> str | None:
    candidate = raw.strip()
    if candidate.upper() in OPTION_LABELS:
        return candidate.upper()
    label = _label_for_text(candidate, options)
    if label is not None:
        return label
    # "B)", "B. Joule", "(B) Joule": the label must agree with any trailing text.
    match = _LABELLED_ANSWER.match(candidate)
    if match is None:
        return None
    label, rest = match.group(1).upper(), match.group(2).strip()
    if rest and _label_for_text(rest, options) != label:
        return None
    return label


def _label_for_text(text: str, options: List[str]) -> str | None:
    lowered = text.lower()
    for label, option in zip(OPTION_LABELS, options):
        if option.strip().lower() == lowered:
            return label
    return None
