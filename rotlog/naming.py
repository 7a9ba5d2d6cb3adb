"""Backup naming schemes and segment discovery.

Backups live next to the active file as ``<name>.<token>`` or
``<name>.<token>.gz``. The token is parsed once into a sort key so that
ordering is numeric or temporal, never a string comparison of file names
(``app.log.9`` must sort before ``app.log.10``).
"""

import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

GZ_SUFFIX = ".gz"
TMP_SUFFIX = ".tmp"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

_TIMESTAMP_RE = re.compile(r"^\d{8}_\d{6}$")
_SEQUENCE_RE = re.compile(r"^\d+$")


class SegmentState(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPRESSED = "compressed"
    DELETED = "deleted"


@dataclass
class Segment:
    path: str
    token: str | None
    sort_key: object
    state: SegmentState
    size_bytes: int = 0

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def compressed(self) -> bool:
        return self.state == SegmentState.COMPRESSED


class TimestampScheme:
    """``<path>.YYYYMMDD_HHMMSS`` in UTC. Same-second rotations overwrite."""

    def __init__(self, time_func=None):
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))

    def next_token(self) -> str:
        return self._time_func().strftime(TIMESTAMP_FORMAT)

    def parse(self, token: str):
        if not _TIMESTAMP_RE.match(token):
            return None
        try:
            return datetime.strptime(token, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return None

    def observe(self, sort_key):
        pass


class SequenceScheme:
    """``<path>.N`` with N strictly increasing, continuing from the highest on disk."""

    def __init__(self, start: int = 0):
        self._last = start

    @property
    def last(self) -> int:
        return self._last

    def next_token(self) -> str:
        """Name for the next backup. Only advances once the rename is observed."""
        return str(self._last + 1)

    def parse(self, token: str):
        if not _SEQUENCE_RE.match(token):
            return None
        return int(token)

    def observe(self, sort_key):
        if sort_key > self._last:
            self._last = sort_key


def make_scheme(name: str, time_func=None):
    if name == "sequence":
        return SequenceScheme()
    if name == "timestamp":
        return TimestampScheme(time_func=time_func)
    raise ValueError(f"Unknown naming scheme: {name}")


def detect_scheme(active_path: str, default: str = "timestamp") -> str:
    """Guess the naming scheme of an existing stream from its backup file names."""
    log_dir = os.path.dirname(os.path.abspath(active_path))
    log_filename = os.path.basename(active_path)
    try:
        names = os.listdir(log_dir)
    except FileNotFoundError:
        return default

    found = set()
    for name in names:
        parsed = split_backup_name(name, log_filename)
        if parsed is None:
            continue
        token = parsed[0]
        if _TIMESTAMP_RE.match(token):
            found.add("timestamp")
        elif _SEQUENCE_RE.match(token):
            found.add("sequence")
    if len(found) == 1:
        return found.pop()
    return default


def backup_path(active_path: str, token: str) -> str:
    return f"{active_path}.{token}"


def split_backup_name(filename: str, log_filename: str) -> tuple[str, bool] | None:
    """Return (token, compressed) for a backup file name, or None if it isn't one."""
    prefix = log_filename + "."
    if not filename.startswith(prefix):
        return None
    token = filename[len(prefix):]
    compressed = token.endswith(GZ_SUFFIX)
    if compressed:
        token = token[: -len(GZ_SUFFIX)]
    if not token or "." in token:
        return None
    return token, compressed


def scan_backups(active_path: str, scheme) -> tuple[list[Segment], list[str]]:
    """List the backups of a stream oldest first, plus junk files to clean up.

    Junk is anything that looks like ours but must not count as a backup:
    ``.gz.tmp`` leftovers, zero-byte ``.gz`` files, and a ``.gz`` whose
    uncompressed twin still exists (compression was interrupted before the
    original was removed).
    """
    log_dir = os.path.dirname(os.path.abspath(active_path))
    log_filename = os.path.basename(active_path)
    prefix = log_filename + "."

    try:
        names = os.listdir(log_dir)
    except FileNotFoundError:
        return [], []

    by_token: dict[str, dict[bool, Segment]] = {}
    junk = []
    for name in names:
        if not name.startswith(prefix):
            continue
        path = os.path.join(log_dir, name)
        if name.endswith(GZ_SUFFIX + TMP_SUFFIX):
            junk.append(path)
            continue
        parsed = split_backup_name(name, log_filename)
        if parsed is None:
            continue
        token, compressed = parsed
        sort_key = scheme.parse(token)
        if sort_key is None:
            continue
        try:
            size = os.path.getsize(path)
        except OSError:
            continue  # removed between listdir and stat
        if compressed and size == 0:
            junk.append(path)
            continue
        state = SegmentState.COMPRESSED if compressed else SegmentState.ARCHIVED
        by_token.setdefault(token, {})[compressed] = Segment(
            path=path, token=token, sort_key=sort_key, state=state, size_bytes=size,
        )

    segments = []
    for variants in by_token.values():
        if False in variants:
            segments.append(variants[False])
            if True in variants:
                junk.append(variants[True].path)
        else:
            segments.append(variants[True])

    segments.sort(key=lambda s: s.sort_key)
    return segments, junk
