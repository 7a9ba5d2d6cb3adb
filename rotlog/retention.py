"""Post-rotation operations: compression and retention enforcement.

Everything here runs on the archive worker thread. Failures are logged and
never raised to writers; the filesystem is always left in a state where the
uncompressed backup (or an undeleted file) can be inspected by hand.
"""

import gzip
import logging
import os
import shutil
from datetime import datetime, timedelta, timezone

from rotlog.config import Config
from rotlog.errors import CompressionError, PruneError
from rotlog.naming import GZ_SUFFIX, TMP_SUFFIX, SegmentState, scan_backups

logger = logging.getLogger(__name__)


def compress_file(filepath: str) -> str:
    """Gzip *filepath* to ``filepath.gz`` and remove the original. Returns the .gz path.

    The compressed copy is written to a temp name and renamed into place, so a
    ``.gz`` only ever exists once it is complete. The original is removed last.
    """
    gz_path = filepath + GZ_SUFFIX
    tmp_path = gz_path + TMP_SUFFIX
    try:
        with open(filepath, "rb") as f_in, gzip.open(tmp_path, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
        os.replace(tmp_path, gz_path)
    except FileNotFoundError:
        _discard(tmp_path)
        raise
    except OSError as exc:
        _discard(tmp_path)
        raise CompressionError(f"failed to compress {filepath}: {exc}") from exc
    try:
        os.remove(filepath)
    except FileNotFoundError:
        pass
    return gz_path


def _discard(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Could not remove partial file %s", path)


class RetentionManager:
    """Compresses rotated backups and bounds how many of them stay on disk."""

    def __init__(self, config: Config, scheme, log: logging.Logger | None = None, time_func=None):
        self._config = config
        self._scheme = scheme
        self._log = log or logger
        self._time_func = time_func or (lambda: datetime.now(timezone.utc))

    def archive(self, backup_path: str) -> str:
        """Compress a freshly rotated backup if enabled. Returns where the segment now lives."""
        if not self._config.compress:
            return backup_path
        try:
            gz_path = compress_file(backup_path)
        except FileNotFoundError:
            self._log.debug("Backup %s already gone, skipping compression", backup_path)
            return backup_path
        except CompressionError as exc:
            self._log.error("%s; keeping uncompressed backup", exc)
            return backup_path
        except OSError as exc:
            # Compressed copy is complete; only the original could not be removed.
            self._log.warning("Compressed %s but could not remove original: %s", backup_path, exc)
            return backup_path + GZ_SUFFIX
        self._log.info("Compressed: %s", gz_path)
        return gz_path

    def prune(self) -> list[str]:
        """Delete expired and excess backups, oldest first. Returns deleted filenames."""
        segments, junk = scan_backups(self._config.path, self._scheme)
        deleted = []

        for path in junk:
            if self._remove(path):
                self._log.info("Removed leftover file %s", os.path.basename(path))

        survivors = list(segments)

        if self._config.max_age_days > 0:
            cutoff = self._time_func() - timedelta(days=self._config.max_age_days)
            # Stop at the first young segment so nothing newer than a kept one goes.
            while survivors and self._segment_time(survivors[0]) < cutoff:
                segment = survivors.pop(0)
                if self._remove(segment.path):
                    segment.state = SegmentState.DELETED
                    deleted.append(segment.name)

        excess = len(survivors) - self._config.max_backups
        for segment in survivors[:max(excess, 0)]:
            if self._remove(segment.path):
                segment.state = SegmentState.DELETED
                deleted.append(segment.name)

        if deleted:
            self._log.info("Purged %d file(s): %s", len(deleted), ", ".join(deleted))
        return deleted

    def handle_rotation(self, backup_path: str) -> list[str]:
        """Archive then prune, in that order, for one rotation."""
        self.archive(backup_path)
        return self.prune()

    def recover(self) -> list[str]:
        """Startup sweep: compress leftover uncompressed backups, then prune."""
        if self._config.compress:
            segments, _ = scan_backups(self._config.path, self._scheme)
            for segment in segments:
                if segment.state == SegmentState.ARCHIVED:
                    self.archive(segment.path)
        return self.prune()

    def _segment_time(self, segment) -> datetime:
        if isinstance(segment.sort_key, datetime):
            return segment.sort_key
        try:
            mtime = os.path.getmtime(segment.path)
        except OSError:
            return self._time_func()
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def _remove(self, path: str) -> bool:
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            err = PruneError(f"failed to delete {path}: {exc}")
            self._log.error("Prune skipped a file: %s", err)
            return False
        return True
