from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace

from .aws_boto3 import ObjectStatus, ObjectStore, StoreError
from .exif_utils import CaptureDate, extract_capture_date, override_capture_date
from .image_processing import DEFAULT_QUALITY, TARGET_WIDTH, ProcessedImage, encode, resize
from .keys import DEFAULT_PREFIX, build_key
from .media import ImageSource, content_type_for

logger = logging.getLogger("flimkit.pipeline")

MSG_NO_PHOTO = "No photo chosen"
MSG_NO_FILENAME = "No filename given"
MSG_NO_DATE = "No date chosen"


class ValidationError(RuntimeError):
    """Local check that fails before any network call."""


class NoImageSelected(ValidationError):
    def __init__(self, message: str = MSG_NO_PHOTO):
        super().__init__(message)


class NoFilenameProvided(ValidationError):
    def __init__(self, message: str = MSG_NO_FILENAME):
        super().__init__(message)


class NoDateAvailable(ValidationError):
    def __init__(self, message: str = MSG_NO_DATE):
        super().__init__(message)


class UploadDecision(enum.Enum):
    PROCEED = "proceed"
    SKIP = "skip"
    PROMPT_OVERWRITE = "prompt_overwrite"


@dataclass(frozen=True)
class Session:
    """
    Everything picked so far in one editing session. Each step returns a new
    Session; nothing is mutated in place.
    """

    source: ImageSource | None = None
    processed: ProcessedImage | None = None
    capture_date: CaptureDate | None = None
    date_overridden: bool = False
    filename: str = ""


@dataclass(frozen=True)
class UploadRequest:
    key: str
    payload: bytes = field(repr=False)
    content_type: str


def select_image(session: Session, source: ImageSource, *, target_width: int = TARGET_WIDTH) -> Session:
    """
    Replaces the current image. A manually chosen date survives; otherwise the
    date is whatever the new image's EXIF says (possibly nothing).
    """
    processed = resize(source, target_width=target_width)
    capture_date = session.capture_date
    if not session.date_overridden:
        capture_date = extract_capture_date(source)
        if capture_date is not None:
            logger.debug(f"EXIF date for {source.name or 'image'}: {capture_date.display}")
    return replace(session, source=source, processed=processed, capture_date=capture_date)


def choose_date(session: Session, year: int, month: int, day: int) -> Session:
    return replace(
        session,
        capture_date=override_capture_date(year, month, day),
        date_overridden=True,
    )


def set_filename(session: Session, filename: str) -> Session:
    return replace(session, filename=filename)


def prepare_upload(
    session: Session,
    *,
    quality: int = DEFAULT_QUALITY,
    key_prefix: str = DEFAULT_PREFIX,
) -> UploadRequest:
    """
    Validates the session and produces the key and payload to store.

    Raises:
        NoImageSelected, NoFilenameProvided, NoDateAvailable: checked in that order
        MissingField, UnsafeFilename: from key construction
    """
    if session.processed is None:
        raise NoImageSelected()
    filename = session.filename.strip()
    if not filename:
        raise NoFilenameProvided()
    if session.capture_date is None:
        raise NoDateAvailable()

    processed = session.processed
    key = build_key(session.capture_date, filename, processed.extension, prefix=key_prefix)
    payload = encode(processed, quality=quality)
    return UploadRequest(key=key, payload=payload, content_type=content_type_for(processed.extension))


def resolve_upload_decision(
    store: ObjectStore,
    bucket: str,
    key: str,
    *,
    on_existing: str = "prompt",
) -> UploadDecision:
    """
    Checks whether `key` already exists.

    Raises:
        StoreError: If the check itself failed; the caller must not upload.
    """
    result = store.head_object(bucket, key)
    if result.status is ObjectStatus.NOT_FOUND:
        return UploadDecision.PROCEED
    if result.status is ObjectStatus.FOUND:
        logger.info(f"Object already exists at {key}")
        if on_existing == "overwrite":
            return UploadDecision.PROCEED
        if on_existing == "skip":
            return UploadDecision.SKIP
        return UploadDecision.PROMPT_OVERWRITE

    error = result.error or StoreError(f"Existence check failed for {key}")
    logger.warning(f"Existence check failed for {key}: {error}")
    raise error


def public_url(cdn_url: str, key: str) -> str:
    return cdn_url + key


def _rollback(store: ObjectStore, bucket: str, key: str) -> None:
    try:
        store.delete_object(bucket, key)
    except StoreError as e:
        logger.warning(f"Could not remove private object s3://{bucket}/{key}: {e}")


def upload(
    store: ObjectStore,
    bucket: str,
    key: str,
    data: bytes,
    *,
    cdn_url: str,
    content_type: str = "image/jpeg",
) -> str:
    """
    Writes `data` under `key`, makes it public-read and returns its public URL.
    Failures are terminal for this attempt. If the object was written but
    could not be made public it is deleted again, so a retry sees no object.
    Calling again with the same arguments overwrites the same object.
    """
    logger.debug(f"Uploading {len(data)} bytes to s3://{bucket}/{key}")
    try:
        store.put_object(bucket, key, data, content_type=content_type)
    except StoreError as e:
        logger.debug(f"Upload of {key} failed: {e}")
        raise
    try:
        store.set_public_read(bucket, key)
    except StoreError as e:
        logger.debug(f"Making {key} public failed, removing it: {e}")
        _rollback(store, bucket, key)
        raise
    url = public_url(cdn_url, key)
    logger.info(f"Saved to {url}")
    return url


def overwrite_prompt(key: str) -> str:
    return f"File already exists at {key}. Would you like to overwrite?"
