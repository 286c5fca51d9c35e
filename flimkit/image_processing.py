from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

from PIL import Image, ImageOps

from .media import ANIMATED_EXT, DEFAULT_EXT, ImageSource

logger = logging.getLogger("flimkit.image_processing")

TARGET_WIDTH = 1024
DEFAULT_QUALITY = 85


class ProcessingError(RuntimeError):
    pass


class DecodeFailure(ProcessingError):
    pass


@dataclass(frozen=True, eq=False)
class ProcessedImage:
    preview: Image.Image = field(repr=False)
    extension: str
    # Original bytes, kept only for animated sources (stored without re-encoding).
    passthrough: bytes | None = field(default=None, repr=False)

    @property
    def size(self) -> tuple[int, int]:
        return self.preview.size

    @property
    def is_animated(self) -> bool:
        return self.passthrough is not None


def target_size(width: int, height: int, *, target_width: int = TARGET_WIDTH) -> tuple[int, int]:
    """
    Fixed target width; height scaled by target_width / width and truncated.
    """
    if width <= 0:
        raise ValueError(f"Invalid source width {width}")
    return target_width, (height * target_width) // width


def _is_animated_gif(im: Image.Image) -> bool:
    return im.format == "GIF" and bool(getattr(im, "is_animated", False))


def resize(
    source: ImageSource,
    *,
    target_width: int = TARGET_WIDTH,
    resampling: Image.Resampling | None = None,
) -> ProcessedImage:
    """
    - Auto-orient using EXIF orientation
    - Scale the first frame to `target_width` (upscaling small images too)
    - Animated GIFs keep their original bytes for storage

    Raises:
        DecodeFailure: If the source can't be decoded as an image
    """
    if resampling is None:
        if target_width <= 512:
            resampling = Image.Resampling.BILINEAR
        else:
            resampling = Image.Resampling.LANCZOS

    try:
        with Image.open(source.open_stream()) as im:
            animated = _is_animated_gif(im)
            im.seek(0)
            frame = ImageOps.exif_transpose(im)
            if frame.mode not in ("RGB", "RGBA"):
                frame = frame.convert("RGBA" if "transparency" in frame.info else "RGB")

            w, h = frame.size
            new_w, new_h = target_size(w, h, target_width=target_width)
            preview = frame.resize((new_w, max(1, new_h)), resampling)
    except Exception as e:  # noqa: BLE001 - Pillow raises a wide range of errors on bad input
        name = source.name or "image"
        logger.debug(f"Failed to decode {name}: {type(e).__name__}: {e}")
        raise DecodeFailure(
            f"Failed to decode image: {name}\n"
            f"  Declared type: {source.mime_type}\n"
            f"  This file may not be a valid image, or the file is corrupted.\n"
            f"  Original error: {e}"
        ) from e

    if animated:
        logger.debug(f"{source.name or 'image'} is an animated GIF; storing original bytes")
        return ProcessedImage(preview=preview, extension=ANIMATED_EXT, passthrough=source.data)
    return ProcessedImage(preview=preview, extension=DEFAULT_EXT)


def encode(processed: ProcessedImage, *, quality: int = DEFAULT_QUALITY) -> bytes:
    """
    JPEG-encodes the resized image, or returns the untouched source bytes
    for animated images.
    """
    if processed.passthrough is not None:
        return processed.passthrough

    im = processed.preview
    if im.mode != "RGB":
        im = im.convert("RGB")
    buf = io.BytesIO()
    im.save(buf, format="JPEG", quality=int(quality), optimize=True)
    return buf.getvalue()
