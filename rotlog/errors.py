"""Exception hierarchy for the rotating log writer.

Plain ``OSError`` from open/write/close is the I/O failure class and is
propagated to callers untouched. The types below cover the cases that need
their own identity.
"""


class RotatingLogError(Exception):
    """Base exception for all rotating log errors."""


class ConfigError(RotatingLogError, ValueError):
    """Raised when a Config has an invalid or missing field."""


class WriterClosedError(RotatingLogError):
    """Raised when writing to a writer that has been closed."""


class ShortWriteError(RotatingLogError, OSError):
    """Raised when the OS accepted fewer bytes than requested."""

    def __init__(self, bytes_written: int, expected: int):
        super().__init__(f"short write: {bytes_written} of {expected} bytes")
        self.bytes_written = bytes_written
        self.expected = expected


class RotationError(RotatingLogError):
    """Raised from write() when close, rename or reopen fails during rotation.

    The underlying ``OSError`` is available as ``__cause__``.
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class CompressionError(RotatingLogError):
    """Compression of a backup failed. Only ever logged, never raised to writers."""


class PruneError(RotatingLogError):
    """Deleting a single backup failed. Logged and skipped."""
