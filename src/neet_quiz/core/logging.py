"""JSON-lines logging for neet-quiz runs.

Each run appends to a rotating file in the workspace ``logs`` directory and,
with ``verbose``, mirrors records to stderr. Values registered as secrets
(the service credential) are masked before any handler sees the record.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path, PurePath
from typing import Any, Iterable, Optional

__all__ = [
    "REDACTED",
    "JsonLogFormatter",
    "SecretFilter",
    "configure_logger",
]

REDACTED = "***"

_ROLE = "_neet_quiz_role"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class SecretFilter(logging.Filter):
    """Mask registered secrets in the message and in string ``extra`` values."""

    def __init__(self) -> None:
        super().__init__()
        self._secrets: set[str] = set()

    def register(self, values: Iterable[str]) -> None:
        self._secrets.update(value for value in values if value)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = self._mask(message)
        if masked != message:
            record.msg, record.args = masked, None
        for key, value in list(vars(record).items()):
            if key not in _STANDARD_ATTRS and isinstance(value, str):
                setattr(record, key, self._mask(value))
        return True

    def _mask(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if context:
            payload["extra"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=_json_default)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    filename: Optional[str] = None,
    secrets: Iterable[str] = (),
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
) -> tuple[logging.Logger, Path]:
    """Install (or refresh) the file and console handlers for ``name``.

    Calling this again for the same logger keeps the existing file handler and
    only adjusts levels, the console mirror and the registered secrets.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = _handler_with_role(logger, "file")
    if file_handler is None:
        target = log_dir / (filename or f"{name.rsplit('.', 1)[-1]}.log")
        file_handler = _open_log_file(target, max_bytes, backup_count)
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _level_number(level))

    # Handler filters also run for records from child loggers.
    secret_filter = _secret_filter(file_handler)
    secret_filter.register(secrets)

    console = _handler_with_role(logger, "console")
    if verbose and console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(
            logging.Formatter("%(levelname)s %(name)s: %(message)s")
        )
        setattr(console, _ROLE, "console")
        console.addFilter(secret_filter)
        logger.addHandler(console)
    elif not verbose and console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, Path(file_handler.baseFilename)


def _handler_with_role(logger: logging.Logger, role: str) -> Any:
    for handler in logger.handlers:
        if getattr(handler, _ROLE, None) == role:
            return handler
    return None


def _secret_filter(handler: logging.Handler) -> SecretFilter:
    for existing in handler.filters:
        if isinstance(existing, SecretFilter):
            return existing
    created = SecretFilter()
    handler.addFilter(created)
    return created


def _open_log_file(
    target: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    try:
        handler = _rotating_handler(target, max_bytes, backup_count)
    except OSError:
        handler = _rotating_handler(
            _fallback_dir() / target.name, max_bytes, backup_count
        )
    setattr(handler, _ROLE, "file")
    return handler


def _rotating_handler(
    path: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(JsonLogFormatter())
    Path(handler.baseFilename).chmod(0o600)
    return handler


def _level_number(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _json_default(value: Any) -> Any:
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)


def _fallback_dir() -> Path:
    return Path(tempfile.gettempdir()) / "neet-quiz-logs"
