"""Assemble the generation request sent to the model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from .encoder import EncodedAttachment, UploadedFile, encode_file
from .errors import EmptyInputError

__all__ = [
    "DEFAULT_QUESTION_COUNT",
    "RESPONSE_SCHEMA",
    "GenerationRequest",
    "build_instruction",
    "build_request",
    "resolve_count",
]

DEFAULT_QUESTION_COUNT = 10

RESPONSE_SCHEMA: Mapping[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "questionText": {"type": "STRING"},
                    "options": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                    },
                    "correctAnswer": {"type": "STRING"},
                    "solution": {"type": "STRING"},
                },
            },
        },
    },
}

_INSTRUCTION_TEMPLATE = (
    "From the following files, generate {count} NEET-level multiple-choice "
    "questions.\n"
    "For each question, provide 4 options (A, B, C, D) and a single correct "
    "answer.\n"
    "Make sure there is exactly the amount of questions as specified above.\n"
    "Also, provide a detailed solution/explanation for the correct answer.\n"
    "\n"
    "The questions must strictly adhere to the NEET syllabus (Physics, "
    "Chemistry, Biology).\n"
    "The questions should be challenging and cover key concepts from the "
    "provided content.\n"
    "\n"
    "The response must be in a specific JSON format to be parsed correctly.\n"
    "Do not include any other text or markdown outside of the JSON."
)


@dataclass(frozen=True)
class GenerationRequest:
    instruction_text: str
    attachments: tuple[EncodedAttachment, ...]
    desired_count: int
    output_schema: Mapping[str, Any]

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body expected by ``generateContent``."""

        parts: list[dict[str, Any]] = [{"text": self.instruction_text}]
        parts.extend(attachment.to_part() for attachment in self.attachments)
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": self.output_schema,
            },
        }


def resolve_count(
    desired_count: Optional[int], default: int = DEFAULT_QUESTION_COUNT
) -> int:
    """Missing, zero and negative counts fall back to ``default``."""

    if desired_count is None or desired_count <= 0:
        return default
    return int(desired_count)


def build_instruction(count: int) -> str:
    return _INSTRUCTION_TEMPLATE.format(count=count)


def build_request(
    files: Sequence[UploadedFile],
    desired_count: Optional[int] = None,
    *,
    default_count: int = DEFAULT_QUESTION_COUNT,
    logger: Optional[logging.Logger] = None,
) -> GenerationRequest:
    """Encode ``files`` in order and wrap them with the instruction/schema."""

    if not files:
        raise EmptyInputError("Please upload at least one file.")
    count = resolve_count(desired_count, default_count)
    attachments = tuple(encode_file(upload) for upload in files)
    (logger or logging.getLogger(__name__)).info(
        "Built generation request",
        extra={
            "file_count": len(attachments),
            "desired_count": count,
            "media_types": [a.media_type for a in attachments],
        },
    )
    return GenerationRequest(
        instruction_text=build_instruction(count),
        attachments=attachments,
        desired_count=count,
        output_schema=RESPONSE_SCHEMA,
    )
