from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

if TYPE_CHECKING:
    from botocore.client import BaseClient

    from .config import Config

logger = logging.getLogger("flimkit.aws_boto3")

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class StoreError(RuntimeError):
    pass


class StoreUnreachable(StoreError):
    """Transport-level failure: endpoint, connection, credentials lookup."""


class StoreRejected(StoreError):
    """The service answered with an error (permissions, missing bucket, ...)."""


class ObjectStatus(enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class HeadResult:
    status: ObjectStatus
    error: StoreError | None = None

    @property
    def exists(self) -> bool:
        return self.status is ObjectStatus.FOUND


class ObjectStore(Protocol):
    def head_object(self, bucket: str, key: str) -> HeadResult: ...

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str) -> None: ...

    def set_public_read(self, bucket: str, key: str) -> None: ...

    def delete_object(self, bucket: str, key: str) -> None: ...


def _parse_boto3_error(error: ClientError) -> str:
    """Parse boto3 ClientError and return actionable guidance."""
    error_code = error.response.get("Error", {}).get("Code", "")
    error_message = error.response.get("Error", {}).get("Message", str(error))
    error_message_lower = error_message.lower()

    if error_code in ("InvalidAccessKeyId", "SignatureDoesNotMatch") or "credentials" in error_message_lower:
        return (
            "Store credentials were rejected.\n"
            "  Check FLIMKIT_ACCESS_KEY and FLIMKIT_SECRET_KEY."
        )
    if error_code in ("AccessDenied", "403") or "access denied" in error_message_lower or "forbidden" in error_message_lower:
        return (
            "Access denied. Check the key's permissions:\n"
            "  - s3:PutObject for uploading files\n"
            "  - s3:PutObjectAcl for making them public\n"
            "  - s3:GetObject (HEAD) for the existing-file check"
        )
    if error_code == "NoSuchBucket" or "does not exist" in error_message_lower:
        return (
            "Bucket does not exist or is not accessible.\n"
            "  Verify FLIMKIT_BUCKET and FLIMKIT_ENDPOINT."
        )

    return f"Error code: {error_code}"


def _client_error(action: str, bucket: str, key: str, e: ClientError) -> StoreRejected:
    guidance = _parse_boto3_error(e)
    msg = f"Failed to {action} s3://{bucket}/{key}"
    if guidance:
        msg += f"\n\n{guidance}\n"
    msg += f"\nError: {e}"
    return StoreRejected(msg)


def _transport_error(action: str, bucket: str, key: str, e: BotoCoreError) -> StoreUnreachable:
    return StoreUnreachable(
        f"Could not reach the store to {action} s3://{bucket}/{key}.\n"
        f"  Check your network connection and FLIMKIT_ENDPOINT.\n"
        f"Error: {e}"
    )


def make_s3_client(cfg: Config) -> BaseClient:
    """Create an S3 client for the configured endpoint (AWS, Spaces, MinIO, ...)."""
    config = BotoConfig(
        retries={
            "max_attempts": cfg.max_attempts,
            "mode": "adaptive",
        },
    )
    return boto3.client(
        "s3",
        region_name=cfg.region,
        endpoint_url=cfg.endpoint or None,
        aws_access_key_id=cfg.access_key or None,
        aws_secret_access_key=cfg.secret_key or None,
        config=config,
    )


class S3Store:
    """ObjectStore backed by a boto3 S3 client."""

    def __init__(self, client: BaseClient):
        self._client = client

    @classmethod
    def from_config(cls, cfg: Config) -> "S3Store":
        return cls(make_s3_client(cfg))

    def head_object(self, bucket: str, key: str) -> HeadResult:
        try:
            self._client.head_object(Bucket=bucket, Key=key)
            return HeadResult(ObjectStatus.FOUND)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                return HeadResult(ObjectStatus.NOT_FOUND)
            logger.debug(f"head_object s3://{bucket}/{key} failed: {e}")
            return HeadResult(ObjectStatus.ERROR, _client_error("check", bucket, key, e))
        except BotoCoreError as e:
            logger.debug(f"head_object s3://{bucket}/{key} failed: {e}")
            return HeadResult(ObjectStatus.ERROR, _transport_error("check", bucket, key, e))

    def put_object(self, bucket: str, key: str, data: bytes, *, content_type: str) -> None:
        try:
            self._client.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except ClientError as e:
            raise _client_error("upload to", bucket, key, e) from e
        except BotoCoreError as e:
            raise _transport_error("upload to", bucket, key, e) from e

    def set_public_read(self, bucket: str, key: str) -> None:
        try:
            self._client.put_object_acl(Bucket=bucket, Key=key, ACL="public-read")
        except ClientError as e:
            raise _client_error("set public-read on", bucket, key, e) from e
        except BotoCoreError as e:
            raise _transport_error("set public-read on", bucket, key, e) from e

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            raise _client_error("delete", bucket, key, e) from e
        except BotoCoreError as e:
            raise _transport_error("delete", bucket, key, e) from e

    def check_bucket(self, bucket: str) -> None:
        """Raises StoreError if the bucket can't be reached."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as e:
            raise _client_error("reach bucket", bucket, "", e) from e
        except BotoCoreError as e:
            raise _transport_error("reach bucket", bucket, "", e) from e
