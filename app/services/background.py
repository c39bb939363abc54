"""Background task dispatch for work that must not block the caller."""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

_STOP = object()


class BackgroundWorker:
    """Single daemon thread draining a FIFO task queue.

    Tasks run one at a time in submission order once ``start()`` has been
    called; anything submitted earlier waits in the queue. A failing task is
    logged and the worker moves on to the next one.
    """

    def __init__(self, name: str = "lifecycle-worker") -> None:
        self._name = name
        self._queue: queue.Queue[Any] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def pending(self) -> int:
        """Tasks submitted but not finished yet."""
        return self._queue.unfinished_tasks

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()
        logger.info("[WORKER] %s started", self._name)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Queue a task for the worker thread."""
        self._queue.put((fn, args, kwargs))

    def drain(self, timeout: float | None = None) -> bool:
        """Wait until every queued task has finished; False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def stop(self, timeout: float | None = 5.0) -> None:
        """Finish queued tasks, then stop the thread."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._queue.put(_STOP)
        thread.join(timeout)
        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None
        logger.info("[WORKER] %s stopped", self._name)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                fn, args, kwargs = item
                fn(*args, **kwargs)
            except Exception:
                logger.exception("[WORKER] Background task failed in %s", self._name)
            finally:
                self._queue.task_done()
