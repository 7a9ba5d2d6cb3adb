"""Append-only byte writer with size-based rotation.

A single lock guards the open handle, the byte counter and the rotation
count. Rotation is close -> rename -> reopen inside that lock; compression
and pruning of the renamed backup are handed to the archive worker so that
write() never waits on them.
"""

import logging
import os
import threading

from rotlog.archiver import ArchiveWorker
from rotlog.config import Config
from rotlog.errors import RotationError, ShortWriteError, WriterClosedError
from rotlog.naming import backup_path, make_scheme, scan_backups
from rotlog.retention import RetentionManager

logger = logging.getLogger(__name__)


class RotatingWriter:
    """Thread-safe sink that rotates ``config.path`` before it would exceed ``max_size_bytes``.

    Args:
        config: Stream configuration; validated on construction.
        time_func: Clock returning an aware datetime, used for timestamp
            backup names and age-based retention.
        log: Logger for rotation and background retention messages.

    Raises:
        OSError: if the directory or the active file cannot be opened.
    """

    def __init__(self, config: Config, time_func=None, log: logging.Logger | None = None):
        self._config = config.validate()
        self._filepath = config.path
        self._log = log or logger
        self._lock = threading.Lock()
        self._file = None
        self._size = 0
        self._rotations = 0
        self._closed = False

        self._scheme = make_scheme(config.naming_scheme, time_func=time_func)
        self._retention = RetentionManager(config, self._scheme, log=self._log, time_func=time_func)

        os.makedirs(config.log_dir, exist_ok=True)
        segments, _ = scan_backups(self._filepath, self._scheme)
        for segment in segments:
            self._scheme.observe(segment.sort_key)
        self._open()

        self._worker = ArchiveWorker(config.archive_queue_size, log=self._log)
        self._worker.start()
        self._worker.submit(self._retention.recover)

    @property
    def path(self) -> str:
        return self._filepath

    @property
    def config(self) -> Config:
        return self._config

    @property
    def current_size(self) -> int:
        with self._lock:
            return self._size

    @property
    def rotations(self) -> int:
        with self._lock:
            return self._rotations

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return not self._closed

    def _open(self):
        # Unbuffered so the OS write result (including short writes) is visible.
        f = open(self._filepath, "ab", buffering=0)
        try:
            size = os.fstat(f.fileno()).st_size
        except OSError:
            f.close()
            raise
        self._file = f
        self._size = size

    def _try_reopen(self):
        """Best effort: get a handle on the active path again after a failed rotation."""
        try:
            self._open()
        except OSError as exc:
            self._file = None
            self._log.error("Could not reopen %s, writer unusable until reopened: %s",
                            self._filepath, exc)

    def _handoff(self, rotated_path: str):
        if not self._worker.submit(self._retention.handle_rotation, rotated_path):
            self._log.error("Retention not scheduled for %s; it will be handled by a later prune",
                            rotated_path)

    def _rotate(self) -> str:
        """Close, rename and reopen. Must be called with the lock held."""
        try:
            self._file.close()
        except OSError as exc:
            self._file = None
            self._try_reopen()
            raise RotationError(f"failed to close {self._filepath}: {exc}", self._filepath) from exc
        self._file = None

        token = self._scheme.next_token()
        rotated_path = backup_path(self._filepath, token)
        try:
            os.replace(self._filepath, rotated_path)
        except OSError as exc:
            self._try_reopen()
            raise RotationError(
                f"failed to rename {self._filepath} to {rotated_path}: {exc}", self._filepath
            ) from exc

        self._scheme.observe(self._scheme.parse(token))
        self._rotations += 1
        self._log.info("Rotated: %s -> %s (%d bytes)", self._filepath, rotated_path, self._size)
        try:
            self._open()
        except OSError as exc:
            self._size = 0
            self._handoff(rotated_path)
            raise RotationError(f"failed to open new {self._filepath}: {exc}", self._filepath) from exc
        self._handoff(rotated_path)
        return rotated_path

    def write(self, data: bytes) -> int:
        """Append *data* as one unit. Returns the number of bytes written.

        Rotates first if the write would push the active file past
        ``max_size_bytes``. A write is never split across segments; one that
        is larger than the limit on its own becomes the sole content of a
        fresh segment.

        Raises:
            RotationError: rotation was needed and failed; nothing was written.
            ShortWriteError: the OS accepted only part of *data*.
            OSError: the write itself failed.
            WriterClosedError: the writer has been closed.
        """
        if isinstance(data, str):
            raise TypeError("write() argument must be bytes, not str")
        with self._lock:
            if self._closed:
                raise WriterClosedError(f"writer for {self._filepath} is closed")
            if self._file is None:
                try:
                    self._open()
                except OSError as exc:
                    raise RotationError(
                        f"no active file for {self._filepath}: {exc}", self._filepath
                    ) from exc

            if self._size > 0 and self._size + len(data) > self._config.max_size_bytes:
                self._rotate()

            n = self._file.write(data) or 0
            self._size += n
            if n < len(data):
                raise ShortWriteError(n, len(data))
            return n

    def write_line(self, text: str) -> int:
        """Encode *text* as UTF-8, newline-terminated, and write it."""
        if not text.endswith("\n"):
            text += "\n"
        return self.write(text.encode("utf-8"))

    def flush(self):
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def wait_for_archives(self, timeout: float | None = None) -> bool:
        """Block until queued compression/prune tasks are done. False on timeout."""
        return self._worker.wait_idle(timeout)

    def close(self, timeout: float | None = None):
        """Close the active file and drain the archive worker. Safe to call twice."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            f, self._file = self._file, None
        try:
            if f is not None:
                f.flush()
                f.close()
        finally:
            self._worker.stop(timeout if timeout is not None else self._config.shutdown_timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def open_writer(path: str, max_size_bytes: int, max_backups: int = 10, **options) -> RotatingWriter:
    """Open (or append to) *path* with a writer built from keyword options."""
    time_func = options.pop("time_func", None)
    log = options.pop("log", None)
    config = Config(path=path, max_size_bytes=max_size_bytes, max_backups=max_backups, **options)
    return RotatingWriter(config, time_func=time_func, log=log)
