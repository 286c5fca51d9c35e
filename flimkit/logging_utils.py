from __future__ import annotations

import logging
from pathlib import Path


def setup_logging(*, log_file: Path | None = None, verbose: bool = True) -> logging.Logger:
    """
    Set up logging for flimkit.

    Args:
        log_file: Optional file to append log records to (always at DEBUG level)
        verbose: If True (default), show DEBUG level logs. If False, only show INFO and above.
    """
    logger = logging.getLogger("flimkit")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")

    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file is not None:
        attach_logfile(logger, log_file)

    logger.propagate = False
    return logger


def attach_logfile(logger: logging.Logger, log_file: Path) -> None:
    """
    Adds a logfile handler if one for the same file is not already present.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve():
            return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    fh = logging.FileHandler(log_file)
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(fmt)
    logger.addHandler(fh)
