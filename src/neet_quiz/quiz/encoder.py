"""Turn uploaded files into base64 attachments for the generation request."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .errors import EncodingError

__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "UploadedFile",
    "EncodedAttachment",
    "encode_file",
]

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadedFile:
    """A user-selected file: name, declared media type and a byte source.

    The bytes are only pulled when the file is encoded so an unreadable file
    surfaces as :class:`EncodingError` at that point.
    """

    name: str
    media_type: str
    read: Callable[[], bytes]

    @classmethod
    def from_bytes(
        cls, name: str, data: bytes, media_type: str | None = None
    ) -> "UploadedFile":
        payload = bytes(data)
        return cls(
            name=name,
            media_type=media_type or _guess_media_type(name),
            read=lambda: payload,
        )

    @classmethod
    def from_path(
        cls, path: Path, media_type: str | None = None
    ) -> "UploadedFile":
        source = Path(path)
        return cls(
            name=source.name,
            media_type=media_type or _guess_media_type(source.name),
            read=source.read_bytes,
        )


@dataclass(frozen=True)
class EncodedAttachment:
    media_type: str
    data: str

    def to_part(self) -> dict[str, dict[str, str]]:
        return {"inlineData": {"mimeType": self.media_type, "data": self.data}}


def encode_file(upload: UploadedFile) -> EncodedAttachment:
    """Read ``upload`` and base64-encode its bytes."""

    try:
        raw = upload.read()
    except OSError as exc:
        raise EncodingError(f"Unable to read {upload.name}: {exc}") from exc
    return EncodedAttachment(
        media_type=upload.media_type,
        data=base64.b64encode(raw).decode("ascii"),
    )


def _guess_media_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MEDIA_TYPE
