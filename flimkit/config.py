from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("flimkit.config")

ON_EXISTING_POLICIES = ("prompt", "skip", "overwrite")
DEFAULT_ENV_FILE = "~/.config/flimkit/flimkit.env"


def _expand(p: str) -> Path:
    return Path(os.path.expanduser(p)).resolve()


def _clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def _int_setting(name: str, value: int | None, default: str) -> int:
    if value is not None:
        return int(value)
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} '{raw}' (expected an integer)") from None


def _load_env_file(path: Path) -> None:
    """
    Copies FLIMKIT_* values from a KEY=VALUE file into os.environ.
    Variables that are already set (and non-empty) win over the file.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not read env file {path}: {e}")
        return

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key.startswith("FLIMKIT_") and not os.environ.get(key, "").strip():
            os.environ[key] = value


@dataclass(frozen=True)
class Config:
    access_key: str
    secret_key: str
    endpoint: str
    region: str
    bucket: str
    cdn_url: str

    key_prefix: str
    target_width: int
    jpeg_quality: int
    on_existing: str
    max_attempts: int

    log_file: Path | None

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key and self.secret_key)


def load_config(
    *,
    access_key: str | None = None,
    secret_key: str | None = None,
    endpoint: str | None = None,
    region: str | None = None,
    bucket: str | None = None,
    cdn_url: str | None = None,
    key_prefix: str | None = None,
    target_width: int | None = None,
    jpeg_quality: int | None = None,
    on_existing: str | None = None,
    max_attempts: int | None = None,
    log_file: str | None = None,
) -> Config:
    env_file = os.environ.get("FLIMKIT_ENV_FILE", "").strip() or DEFAULT_ENV_FILE
    if _expand(env_file).is_file():
        _load_env_file(_expand(env_file))
    env = os.environ

    access_key = access_key or env.get("FLIMKIT_ACCESS_KEY", "")
    secret_key = secret_key or env.get("FLIMKIT_SECRET_KEY", "")
    endpoint = endpoint or env.get("FLIMKIT_ENDPOINT", "")
    region = region or env.get("FLIMKIT_REGION", "us-east-1")
    bucket = bucket or env.get("FLIMKIT_BUCKET", "")
    cdn_url = cdn_url or env.get("FLIMKIT_CDN_URL", "")

    key_prefix = (key_prefix or env.get("FLIMKIT_KEY_PREFIX", "food")).strip("/")

    target_width = _int_setting("FLIMKIT_TARGET_WIDTH", target_width, "1024")
    if target_width <= 0:
        raise ValueError(f"Invalid target width {target_width} (must be positive)")

    jpeg_quality = _clamp(
        _int_setting("FLIMKIT_JPEG_QUALITY", jpeg_quality, "85"),
        1,
        100,
    )

    on_existing = (on_existing or env.get("FLIMKIT_ON_EXISTING", "prompt")).strip().lower()
    if on_existing not in ON_EXISTING_POLICIES:
        raise ValueError(
            f"Invalid on-existing policy '{on_existing}' "
            f"(expected one of: {', '.join(ON_EXISTING_POLICIES)})"
        )

    max_attempts = _int_setting("FLIMKIT_MAX_ATTEMPTS", max_attempts, "3")

    log_file = log_file or env.get("FLIMKIT_LOG_FILE", "")

    return Config(
        access_key=access_key,
        secret_key=secret_key,
        endpoint=endpoint,
        region=region,
        bucket=bucket,
        cdn_url=cdn_url,
        key_prefix=key_prefix,
        target_width=target_width,
        jpeg_quality=jpeg_quality,
        on_existing=on_existing,
        max_attempts=max(1, max_attempts),
        log_file=_expand(log_file) if log_file else None,
    )
