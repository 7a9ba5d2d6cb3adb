"""logging.Handler that persists formatted records through a RotatingWriter."""

import logging

from rotlog.writer import RotatingWriter


class RotatingLogHandler(logging.Handler):
    """Formats each record, appends a newline and writes it as one unit.

    The handler does not own the writer unless ``owns_writer`` is set, in
    which case close() also closes the writer.
    """

    def __init__(self, writer: RotatingWriter, level=logging.NOTSET,
                 encoding: str = "utf-8", owns_writer: bool = False):
        super().__init__(level)
        self._writer = writer
        self._encoding = encoding
        self._owns_writer = owns_writer

    @property
    def writer(self) -> RotatingWriter:
        return self._writer

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.format(record)
            if not msg.endswith("\n"):
                msg += "\n"
            self._writer.write(msg.encode(self._encoding))
        except Exception:
            self.handleError(record)

    def flush(self):
        self.acquire()
        try:
            if not self._writer.closed:
                self._writer.flush()
        finally:
            self.release()

    def close(self):
        try:
            if self._owns_writer:
                self._writer.close()
        finally:
            super().close()
