from __future__ import annotations

import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .media import ImageSource

logger = logging.getLogger("flimkit.exif_utils")

# EXIF tag IDs
TAG_DATETIME = 306
TAG_EXIF_IFD = 0x8769
TAG_DATETIME_ORIGINAL = 36867


@dataclass(frozen=True)
class CaptureDate:
    year: str
    month: str
    day: str

    @property
    def display(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"


def parse_exif_date(s: str | None) -> CaptureDate | None:
    """
    EXIF datetimes look like 'YYYY:MM:DD HH:MM:SS'. Only the fixed offsets of
    the first 10 characters are read, as-is; the parts are not range-checked.
    """
    s = s or ""
    if len(s) < 10:
        return None
    return CaptureDate(year=s[0:4], month=s[5:7], day=s[8:10])


def extract_capture_date(source: ImageSource) -> CaptureDate | None:
    """
    Reads DateTime (falling back to DateTimeOriginal) from the embedded EXIF.
    Returns None when there is no tag or the stream can't be read.
    """
    try:
        with Image.open(source.open_stream()) as im:
            exif = im.getexif()
            if not exif:
                return None
            raw = exif.get(TAG_DATETIME)
            if raw is None:
                raw = exif.get_ifd(TAG_EXIF_IFD).get(TAG_DATETIME_ORIGINAL)
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.debug(f"No EXIF date for {source.name or 'image'}: {e}")
        return None

    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")
    return parse_exif_date(str(raw) if raw is not None else None)


def override_capture_date(year: int, month: int, day: int) -> CaptureDate:
    """
    Builds a CaptureDate from date-picker values: `month` is zero-based,
    `day` is the day of the month as given.
    """
    return CaptureDate(
        year="%d" % year,
        month="%02d" % (month + 1),
        day="%02d" % day,
    )
