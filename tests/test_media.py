from __future__ import annotations

from pathlib import Path

from flimkit import media
from flimkit.media import ImageSource


def test_guess_mime_type():
    assert media.guess_mime_type(Path("a.JPG")) == "image/jpeg"
    assert media.guess_mime_type(Path("a.gif")) == "image/gif"
    assert media.guess_mime_type(Path("a.png")) == "image/png"


def test_image_source_from_path(tmp_path: Path):
    p = tmp_path / "lunch.jpg"
    p.write_bytes(b"\xff\xd8fake")
    src = ImageSource.from_path(p)
    assert src.mime_type == "image/jpeg"
    assert src.name == "lunch.jpg"
    assert src.open_stream().read() == b"\xff\xd8fake"
    # Each call hands out a fresh stream
    assert src.open_stream().read() == b"\xff\xd8fake"


def test_image_source_unknown_type(tmp_path: Path):
    p = tmp_path / "mystery"
    p.write_bytes(b"x")
    assert ImageSource.from_path(p).mime_type == "application/octet-stream"


def test_content_type_for():
    assert media.content_type_for("gif") == "image/gif"
    assert media.content_type_for("jpg") == "image/jpeg"
