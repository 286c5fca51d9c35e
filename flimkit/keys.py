from __future__ import annotations

from .exif_utils import CaptureDate

DEFAULT_PREFIX = "food"


class MissingField(ValueError):
    pass


class UnsafeFilename(ValueError):
    pass


def _check_filename(filename: str) -> None:
    if "/" in filename or "\\" in filename:
        raise UnsafeFilename(f"Filename may not contain path separators: {filename!r}")
    if any(ord(c) < 32 or ord(c) == 127 for c in filename):
        raise UnsafeFilename(f"Filename may not contain control characters: {filename!r}")


def build_key(
    capture_date: CaptureDate | None,
    filename: str | None,
    extension: str,
    *,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    """
    Builds `{prefix}/{YYYY}/{MM}/{YYYY}-{MM}-{DD}_{filename}.{extension}`.

    The filename is trimmed but otherwise used verbatim.

    Raises:
        MissingField: If any date part or the trimmed filename is empty
        UnsafeFilename: If the filename would escape its date directory
    """
    missing: list[str] = []
    if capture_date is None:
        missing.extend(["year", "month", "day"])
    else:
        missing.extend(
            name
            for name, value in (
                ("year", capture_date.year),
                ("month", capture_date.month),
                ("day", capture_date.day),
            )
            if not value
        )
    name = (filename or "").strip()
    if not name:
        missing.append("filename")
    if missing:
        raise MissingField(f"Cannot build storage key, missing: {', '.join(missing)}")

    _check_filename(name)
    y, m, d = capture_date.year, capture_date.month, capture_date.day
    return f"{prefix}/{y}/{m}/{y}-{m}-{d}_{name}.{extension}"
