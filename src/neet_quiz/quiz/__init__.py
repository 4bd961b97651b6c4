from .encoder import EncodedAttachment, UploadedFile, encode_file
from .errors import (
    EmptyInputError,
    EncodingError,
    MalformedResponseError,
    QuizGenerationError,
    QuizStateError,
    TransportExhaustedError,
)
from .exporter import (
    ExportFormat,
    render_export,
    to_csv,
    to_plain_text,
    write_export,
)
from .models import OPTION_LABELS, Question, ScoreResult, calculate_results
from .parser import parse_response
from .pipeline import QuizGenerator
from .prompt import (
    DEFAULT_QUESTION_COUNT,
    RESPONSE_SCHEMA,
    GenerationRequest,
    build_request,
)
from .state import (
    Answering,
    Error,
    Idle,
    Loading,
    QuizStateMachine,
    Scored,
    SessionState,
)
from .transport import AttemptOutcome, GenerationClient, backoff_delay

__all__ = [
    "EncodedAttachment",
    "UploadedFile",
    "encode_file",
    "EmptyInputError",
    "EncodingError",
    "MalformedResponseError",
    "QuizGenerationError",
    "QuizStateError",
    "TransportExhaustedError",
    "ExportFormat",
    "render_export",
    "to_csv",
    "to_plain_text",
    "write_export",
    "OPTION_LABELS",
    "Question",
    "ScoreResult",
    "calculate_results",
    "parse_response",
    "QuizGenerator",
    "DEFAULT_QUESTION_COUNT",
    "RESPONSE_SCHEMA",
    "GenerationRequest",
    "build_request",
    "Answering",
    "Error",
    "Idle",
    "Loading",
    "QuizStateMachine",
    "Scored",
    "SessionState",
    "AttemptOutcome",
    "GenerationClient",
    "backoff_delay",
]
