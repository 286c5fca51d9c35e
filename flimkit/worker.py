from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger("flimkit.worker")


class UploadInProgress(RuntimeError):
    pass


class UploadWorker:
    """
    Runs one background upload at a time.

    Submitting while a task is still running raises UploadInProgress instead
    of queueing or interleaving. A started task can't be cancelled; it runs
    to completion or failure. Arguments are bound at submit time, so callers
    hand over a snapshot rather than state that may change mid-flight.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="flimkit-upload")
        self._lock = threading.Lock()
        self._current: Future | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._current is not None and not self._current.done()

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            if self._current is not None and not self._current.done():
                raise UploadInProgress("An upload is already in progress; wait for it to finish.")
            fut = self._executor.submit(fn, *args, **kwargs)
            self._current = fut
        fut.add_done_callback(self._log_failure)
        return fut

    @staticmethod
    def _log_failure(fut: Future) -> None:
        exc = fut.exception()
        if exc is not None:
            logger.error(f"Upload failed ({type(exc).__name__}): {exc}")

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "UploadWorker":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown(wait=True)
