from __future__ import annotations

import os
from dataclasses import dataclass

from .aws_boto3 import S3Store, StoreError
from .config import Config


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    message: str
    is_fatal: bool = False


def _check_credentials(cfg: Config) -> CheckResult:
    if not cfg.has_credentials:
        return CheckResult(
            "credentials",
            False,
            "FLIMKIT_ACCESS_KEY / FLIMKIT_SECRET_KEY not set (falling back to the default AWS credential chain)",
        )
    return CheckResult("credentials", True, f"Access key: {cfg.access_key[:4]}…")


def _check_bucket_configured(cfg: Config) -> CheckResult:
    if not cfg.bucket:
        return CheckResult("bucket", False, "FLIMKIT_BUCKET is not set", is_fatal=True)
    return CheckResult("bucket", True, f"Bucket: {cfg.bucket} | Endpoint: {cfg.endpoint or '(AWS default)'}")


def _check_cdn_url(cfg: Config) -> CheckResult:
    if not cfg.cdn_url:
        return CheckResult("cdn_url", False, "FLIMKIT_CDN_URL is not set; public links will be bare keys")
    if not cfg.cdn_url.startswith(("http://", "https://")):
        return CheckResult("cdn_url", False, f"CDN URL does not look like a URL: {cfg.cdn_url}")
    return CheckResult("cdn_url", True, f"CDN URL: {cfg.cdn_url}")


def _check_bucket_access(store: S3Store, cfg: Config) -> CheckResult:
    try:
        store.check_bucket(cfg.bucket)
    except StoreError as e:
        return CheckResult("store_access", False, str(e), is_fatal=True)
    return CheckResult("store_access", True, f"Bucket reachable: {cfg.bucket}")


def run_doctor(
    cfg: Config,
    *,
    store: S3Store | None = None,
    skip_store: bool = False,
) -> tuple[int, list[CheckResult]]:
    results: list[CheckResult] = []
    results.append(
        CheckResult(
            "config",
            True,
            f"Key prefix: {cfg.key_prefix} | Width: {cfg.target_width} | "
            f"Quality: {cfg.jpeg_quality} | On existing: {cfg.on_existing}",
        )
    )
    results.append(_check_credentials(cfg))
    results.append(_check_bucket_configured(cfg))
    results.append(_check_cdn_url(cfg))

    # Only attempt the network check if there's a bucket to check
    if not skip_store and results[2].ok:
        store = store if store is not None else S3Store.from_config(cfg)
        results.append(_check_bucket_access(store, cfg))

    fatal = any((not r.ok) and r.is_fatal for r in results)
    rc = 2 if fatal else 0
    return rc, results


def format_results(results: list[CheckResult]) -> str:
    lines: list[str] = []
    for r in results:
        status = "OK" if r.ok else ("FAIL" if r.is_fatal else "WARN")
        lines.append(f"[{status}] {r.name}: {r.message}")
    return os.linesep.join(lines)
