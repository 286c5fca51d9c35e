from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from .aws_boto3 import ObjectStore, S3Store, StoreError
from .config import ON_EXISTING_POLICIES, Config, load_config
from .doctor import format_results, run_doctor
from .image_processing import ProcessingError
from .keys import MissingField, UnsafeFilename
from .logging_utils import setup_logging
from .media import ImageSource
from .pipeline import (
    NoImageSelected,
    Session,
    UploadDecision,
    ValidationError,
    choose_date,
    overwrite_prompt,
    prepare_upload,
    resolve_upload_decision,
    select_image,
    set_filename,
    upload,
)
from .qr import QrError, render_qr_ascii, write_qr_png
from .worker import UploadWorker


def _parse_date(s: str) -> datetime:
    try:
        return datetime.strptime(s, "%Y-%m-%d")
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{s}' (expected YYYY-MM-DD)") from e


def _make_store(cfg: Config) -> ObjectStore:
    return S3Store.from_config(cfg)


def _confirm(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _load(args: argparse.Namespace) -> Config:
    return load_config(
        bucket=args.bucket,
        endpoint=args.endpoint,
        cdn_url=args.cdn_url,
        key_prefix=args.key_prefix,
        jpeg_quality=getattr(args, "quality", None),
        on_existing=getattr(args, "on_existing", None),
        log_file=args.log_file,
    )


def _build_session(args: argparse.Namespace, cfg: Config) -> Session:
    session = Session()
    if args.date is not None:
        # The override takes a zero-based month, like a date-picker widget hands it over.
        session = choose_date(session, args.date.year, args.date.month - 1, args.date.day)
    if args.image is not None:
        path = Path(args.image).expanduser()
        if not path.is_file():
            raise NoImageSelected(f"No photo chosen ({path} not found)")
        session = select_image(session, ImageSource.from_path(path), target_width=cfg.target_width)
    return set_filename(session, args.name or "")


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--bucket", default=None, help="Bucket name (or FLIMKIT_BUCKET)")
    p.add_argument("--endpoint", default=None, help="S3-compatible endpoint URL (or FLIMKIT_ENDPOINT)")
    p.add_argument("--cdn-url", default=None, help="Base URL for public links (or FLIMKIT_CDN_URL)")
    p.add_argument("--key-prefix", default=None, help="Top-level key prefix (default: food)")
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    p.add_argument("--quiet", action="store_true", help="Reduce log verbosity (INFO level only, no DEBUG)")


def _add_image_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("image", nargs="?", default=None, help="Image file to upload")
    p.add_argument("--name", default=None, help="Filename part of the storage key (e.g. lunch)")
    p.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Capture date YYYY-MM-DD; overrides the date found in EXIF",
    )


def cmd_key(args: argparse.Namespace) -> int:
    try:
        cfg = _load(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    logger = setup_logging(log_file=cfg.log_file, verbose=not args.quiet)
    try:
        session = _build_session(args, cfg)
        request = prepare_upload(session, quality=cfg.jpeg_quality, key_prefix=cfg.key_prefix)
    except (ValidationError, MissingField, UnsafeFilename) as e:
        print(str(e), file=sys.stderr)
        return 1
    except ProcessingError as e:
        logger.error(str(e))
        return 2
    print(request.key)
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    try:
        cfg = _load(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    logger = setup_logging(log_file=cfg.log_file, verbose=not args.quiet)

    try:
        session = _build_session(args, cfg)
        request = prepare_upload(session, quality=cfg.jpeg_quality, key_prefix=cfg.key_prefix)
    except (ValidationError, MissingField, UnsafeFilename) as e:
        print(str(e), file=sys.stderr)
        return 1
    except ProcessingError as e:
        logger.error(str(e))
        return 2

    if not cfg.bucket:
        logger.error("No bucket configured. Set FLIMKIT_BUCKET or pass --bucket.")
        return 1

    store = _make_store(cfg)
    with UploadWorker() as worker:
        # Network calls run on the worker; only the overwrite prompt stays here.
        try:
            decision = worker.submit(
                resolve_upload_decision,
                store,
                cfg.bucket,
                request.key,
                on_existing=cfg.on_existing,
            ).result()
        except StoreError:
            return 2

        if decision is UploadDecision.SKIP:
            print(f"File already exists at {request.key}; skipping.")
            return 0
        if decision is UploadDecision.PROMPT_OVERWRITE:
            if not (args.yes or _confirm(overwrite_prompt(request.key))):
                print(f"Left existing file at {request.key} untouched.")
                return 0

        fut = worker.submit(
            upload,
            store,
            cfg.bucket,
            request.key,
            request.payload,
            cdn_url=cfg.cdn_url,
            content_type=request.content_type,
        )
        try:
            url = fut.result()
        except StoreError:
            # Already logged by the worker; the user re-runs the command to retry.
            return 2

    print(f"Saved to {url}")

    try:
        if args.qr:
            print(render_qr_ascii(url))
        if args.qr_png:
            write_qr_png(data=url, out_path=Path(args.qr_png).expanduser())
            logger.info(f"QR code written to {args.qr_png}")
    except QrError as e:
        logger.warning(str(e))
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    try:
        cfg = _load(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    setup_logging(log_file=cfg.log_file, verbose=not args.quiet)
    rc, results = run_doctor(cfg, skip_store=args.skip_store)
    print(format_results(results))
    return rc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="flimkit", description="Resize photos and upload them to object storage")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_up = sub.add_parser("upload", help="Resize an image and upload it under a dated key")
    _add_common_args(p_up)
    _add_image_args(p_up)
    p_up.add_argument("--quality", type=int, default=None, help="JPEG quality 1-100 (default: 85)")
    p_up.add_argument(
        "--on-existing",
        choices=ON_EXISTING_POLICIES,
        default=None,
        help="What to do when the key already exists (default: prompt)",
    )
    p_up.add_argument("--yes", "-y", action="store_true", help="Answer yes to the overwrite prompt")
    p_up.add_argument("--qr", action="store_true", help="Print the public URL as a QR code")
    p_up.add_argument("--qr-png", default=None, help="Write the public URL as a QR code PNG")
    p_up.set_defaults(func=cmd_upload)

    p_key = sub.add_parser("key", help="Print the storage key an upload would use (no network)")
    _add_common_args(p_key)
    _add_image_args(p_key)
    p_key.set_defaults(func=cmd_key)

    p_doc = sub.add_parser("doctor", help="Check configuration and bucket access")
    _add_common_args(p_doc)
    p_doc.add_argument("--skip-store", action="store_true", help="Skip the bucket reachability check")
    p_doc.set_defaults(func=cmd_doctor)

    return p


def main(argv: list[str] | None = None) -> None:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    rc = args.func(args)
    raise SystemExit(rc)
