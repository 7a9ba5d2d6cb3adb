"""ArchiveWorker: single background thread that runs retention tasks off the write path."""

import logging
import queue
import threading

logger = logging.getLogger(__name__)

_STOP = object()


class ArchiveWorker(threading.Thread):
    """Drains a bounded task queue one task at a time.

    One thread means one compressor at a time, and archive/prune tasks for
    successive rotations run strictly in submission order.
    """

    def __init__(self, max_pending: int = 64, log: logging.Logger | None = None):
        super().__init__(name="rotlog-archiver", daemon=True)
        self._queue: queue.Queue = queue.Queue(maxsize=max_pending)
        self._log = log or logger
        self._stopping = threading.Event()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._completed = 0
        self._failed = 0

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    def submit(self, func, *args) -> bool:
        """Queue ``func(*args)``. Returns False (and logs) if the task was rejected."""
        if self._stopping.is_set() or not self.is_alive():
            self._log.error("Archive worker not running, dropped task %s%r", _name(func), args)
            return False
        with self._lock:
            self._pending += 1
        try:
            self._queue.put_nowait((func, args))
        except queue.Full:
            self._task_finished()
            self._log.error(
                "Archive queue full (%d pending), dropped task %s%r",
                self._queue.maxsize, _name(func), args,
            )
            return False
        return True

    def run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            func, args = item
            try:
                func(*args)
            except Exception:
                self._log.exception("Archive task %s%r failed", _name(func), args)
                with self._lock:
                    self._failed += 1
            else:
                with self._lock:
                    self._completed += 1
            finally:
                self._task_finished()

    def _task_finished(self):
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every queued task has finished. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def stop(self, timeout: float | None = None) -> bool:
        """Finish queued tasks, then stop the thread. Returns False if it did not exit in time."""
        if self._stopping.is_set():
            return not self.is_alive()
        self._stopping.set()
        if self.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                pass
            else:
                self.join(timeout)
        if self.is_alive():
            self._log.warning("Archive worker still busy after %.1fs, abandoning", timeout or 0.0)
            return False
        return True


def _name(func) -> str:
    return getattr(func, "__qualname__", repr(func))
