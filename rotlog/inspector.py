"""Inspector logic: list and read the segments of a log stream."""

import gzip
import os

from rotlog.naming import (
    GZ_SUFFIX, Segment, SegmentState, detect_scheme, make_scheme, scan_backups,
)


def list_segments(active_path: str, naming_scheme: str | None = None) -> list[Segment]:
    """Return the segment chain oldest first: backups by token, then the active file.

    When *naming_scheme* is None it is detected from the backup names on disk.
    """
    if naming_scheme is None:
        naming_scheme = detect_scheme(active_path)
    segments, _ = scan_backups(active_path, make_scheme(naming_scheme))
    if os.path.exists(active_path):
        segments.append(Segment(
            path=active_path,
            token=None,
            sort_key=None,
            state=SegmentState.ACTIVE,
            size_bytes=os.path.getsize(active_path),
        ))
    return segments


def read_segment(path: str) -> bytes:
    """Read one segment, transparently decompressing .gz files."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    if path.endswith(GZ_SUFFIX):
        with gzip.open(path, "rb") as f:
            return f.read()
    with open(path, "rb") as f:
        return f.read()


def read_chain(active_path: str, naming_scheme: str | None = None) -> bytes:
    """Concatenate every segment in creation order."""
    return b"".join(read_segment(s.path) for s in list_segments(active_path, naming_scheme))


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
