from __future__ import annotations

import io
import os
import threading
from pathlib import Path

import pytest
from PIL import Image

from flimkit.aws_boto3 import HeadResult, ObjectStatus, StoreError


class FakeStore:
    """In-memory ObjectStore: overwrite-by-key puts, per-object ACLs."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.acls: dict[tuple[str, str], str] = {}
        self.head_error: StoreError | None = None
        self.put_error: StoreError | None = None
        self.acl_error: StoreError | None = None
        self.delete_error: StoreError | None = None
        self.threads: dict[str, str] = {}
        self.puts = 0

    def head_object(self, bucket: str, key: str) -> HeadResult:
        self.threads["head_object"] = threading.current_thread().name
        if self.head_error is not None:
            return HeadResult(ObjectStatus.ERROR, self.head_error)
        if (bucket, key) in self.objects:
            return HeadResult(ObjectStatus.FOUND)
        return HeadResult(ObjectStatus.NOT_FOUND)

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str) -> None:
        self.threads["put_object"] = threading.current_thread().name
        if self.put_error is not None:
            raise self.put_error
        self.puts += 1
        self.objects[(bucket, key)] = (data, content_type)

    def set_public_read(self, bucket: str, key: str) -> None:
        if self.acl_error is not None:
            raise self.acl_error
        self.acls[(bucket, key)] = "public-read"

    def delete_object(self, bucket: str, key: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.objects.pop((bucket, key), None)
        self.acls.pop((bucket, key), None)


def jpeg_bytes(size: tuple[int, int] = (2048, 1536), *, date: str | None = None) -> bytes:
    img = Image.new("RGB", size, (120, 160, 200))
    buf = io.BytesIO()
    if date is not None:
        exif = Image.Exif()
        exif[306] = date  # DateTime
        img.save(buf, format="JPEG", quality=92, exif=exif)
    else:
        img.save(buf, format="JPEG", quality=92)
    return buf.getvalue()


def animated_gif_bytes(size: tuple[int, int] = (200, 100)) -> bytes:
    frames = [Image.new("RGB", size, color) for color in ((255, 0, 0), (0, 255, 0), (0, 0, 255))]
    buf = io.BytesIO()
    frames[0].save(buf, format="GIF", save_all=True, append_images=frames[1:], duration=100, loop=0)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    for key in list(os.environ):
        if key.startswith("FLIMKIT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("FLIMKIT_ENV_FILE", str(tmp_path / "no-such.env"))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
