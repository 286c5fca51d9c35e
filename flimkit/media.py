from __future__ import annotations

import io
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path


ANIMATED_EXT = "gif"
DEFAULT_EXT = "jpg"


def guess_mime_type(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or "application/octet-stream"


@dataclass(frozen=True)
class ImageSource:
    """
    The originally selected image: raw bytes plus the declared MIME type.
    Replaced wholesale when a new image is picked.
    """

    data: bytes = field(repr=False)
    mime_type: str
    name: str | None = None

    def open_stream(self) -> io.BytesIO:
        return io.BytesIO(self.data)

    @classmethod
    def from_path(cls, path: Path) -> "ImageSource":
        return cls(data=path.read_bytes(), mime_type=guess_mime_type(path), name=path.name)


def content_type_for(extension: str) -> str:
    if extension == ANIMATED_EXT:
        return "image/gif"
    return "image/jpeg"
