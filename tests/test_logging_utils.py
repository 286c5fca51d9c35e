from __future__ import annotations

import logging
from pathlib import Path

from flimkit.logging_utils import attach_logfile, setup_logging


def test_setup_logging_default():
    logger = setup_logging()
    assert isinstance(logger, logging.Logger)
    assert logger.name == "flimkit"
    assert not logger.propagate


def test_setup_logging_quiet():
    logger = setup_logging(verbose=False)
    stream_handlers = [h for h in logger.handlers if type(h) is logging.StreamHandler]
    assert stream_handlers[0].level == logging.INFO


def test_setup_logging_with_log_file(tmp_path: Path):
    log_file = tmp_path / "logs" / "flimkit.log"
    logger = setup_logging(log_file=log_file)
    logging.getLogger("flimkit.pipeline").info("hello from the pipeline")
    for h in logger.handlers:
        h.flush()
    assert "hello from the pipeline" in log_file.read_text(encoding="utf-8")


def test_attach_logfile_is_idempotent(tmp_path: Path):
    logger = setup_logging()
    log_file = tmp_path / "flimkit.log"

    attach_logfile(logger, log_file)
    attach_logfile(logger, log_file)

    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert log_file.parent.exists()
