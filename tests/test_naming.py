"""Tests for backup naming and segment discovery."""

import gzip
import os
from datetime import datetime, timezone

import pytest

from rotlog.naming import (
    SegmentState,
    SequenceScheme,
    TimestampScheme,
    backup_path,
    detect_scheme,
    make_scheme,
    scan_backups,
    split_backup_name,
)


def _touch(directory, name, content=b"x"):
    path = os.path.join(directory, name)
    with open(path, "wb") as f:
        f.write(content)
    return path


def _gzip(directory, name, content=b"x"):
    path = os.path.join(directory, name)
    with gzip.open(path, "wb") as f:
        f.write(content)
    return path


class TestSplitBackupName:
    def test_plain(self):
        assert split_backup_name("app.log.3", "app.log") == ("3", False)

    def test_compressed(self):
        assert split_backup_name("app.log.20250115_120000.gz", "app.log") == (
            "20250115_120000", True,
        )

    def test_active_file_is_not_a_backup(self):
        assert split_backup_name("app.log", "app.log") is None

    def test_other_stream(self):
        assert split_backup_name("other.log.1", "app.log") is None

    def test_dotted_token_rejected(self):
        assert split_backup_name("app.log.1.bak", "app.log") is None
        assert split_backup_name("app.log.", "app.log") is None


class TestSchemes:
    def test_sequence_advances_only_when_observed(self):
        scheme = SequenceScheme()
        assert scheme.next_token() == "1"
        assert scheme.next_token() == "1"
        scheme.observe(scheme.parse("1"))
        assert scheme.next_token() == "2"

    def test_sequence_observe_only_raises(self):
        scheme = SequenceScheme()
        scheme.observe(10)
        scheme.observe(4)
        assert scheme.last == 10
        assert scheme.next_token() == "11"

    def test_sequence_parse(self):
        scheme = SequenceScheme()
        assert scheme.parse("42") == 42
        assert scheme.parse("20250115_120000") is None
        assert scheme.parse("abc") is None

    def test_timestamp_token(self):
        scheme = TimestampScheme(time_func=lambda: datetime(2025, 1, 15, 12, 30, 5, tzinfo=timezone.utc))
        assert scheme.next_token() == "20250115_123005"

    def test_timestamp_parse(self):
        scheme = TimestampScheme()
        assert scheme.parse("20250115_123005") == datetime(2025, 1, 15, 12, 30, 5, tzinfo=timezone.utc)
        assert scheme.parse("20251399_000000") is None
        assert scheme.parse("7") is None

    def test_make_scheme(self):
        assert isinstance(make_scheme("sequence"), SequenceScheme)
        assert isinstance(make_scheme("timestamp"), TimestampScheme)
        with pytest.raises(ValueError):
            make_scheme("daily")

    def test_backup_path(self):
        assert backup_path("/var/log/app.log", "7") == "/var/log/app.log.7"


class TestScanBackups:
    def test_numeric_not_lexicographic_order(self, tmp_path):
        d = str(tmp_path)
        for n in (10, 9, 2, 11, 1):
            _touch(d, f"app.log.{n}")
        segments, junk = scan_backups(os.path.join(d, "app.log"), SequenceScheme())
        assert [s.name for s in segments] == [
            "app.log.1", "app.log.2", "app.log.9", "app.log.10", "app.log.11",
        ]
        assert junk == []

    def test_mixed_compressed_and_plain(self, tmp_path):
        d = str(tmp_path)
        _gzip(d, "app.log.1.gz")
        _touch(d, "app.log.2")
        segments, _ = scan_backups(os.path.join(d, "app.log"), SequenceScheme())
        assert [s.name for s in segments] == ["app.log.1.gz", "app.log.2"]
        assert segments[0].state == SegmentState.COMPRESSED
        assert segments[0].compressed
        assert segments[1].state == SegmentState.ARCHIVED

    def test_ignores_active_and_unrelated(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log")
        _touch(d, "other.log.1")
        _touch(d, "notes.txt")
        _touch(d, "app.log.20250115_120000")  # wrong scheme for this stream
        segments, junk = scan_backups(os.path.join(d, "app.log"), SequenceScheme())
        assert segments == []
        assert junk == []

    def test_timestamp_order(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log.20250115_130000")
        _gzip(d, "app.log.20250114_235959.gz")
        _touch(d, "app.log.20250115_120000")
        segments, _ = scan_backups(os.path.join(d, "app.log"), TimestampScheme())
        assert [s.token for s in segments] == [
            "20250114_235959", "20250115_120000", "20250115_130000",
        ]

    def test_junk_detection(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log.1")
        tmp_leftover = _touch(d, "app.log.2.gz.tmp")
        empty_gz = _touch(d, "app.log.3.gz", b"")
        _touch(d, "app.log.4")
        shadow = _gzip(d, "app.log.4.gz")
        segments, junk = scan_backups(os.path.join(d, "app.log"), SequenceScheme())
        assert [s.name for s in segments] == ["app.log.1", "app.log.4"]
        assert sorted(junk) == sorted([tmp_leftover, empty_gz, shadow])

    def test_sizes_recorded(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log.1", b"a" * 42)
        segments, _ = scan_backups(os.path.join(d, "app.log"), SequenceScheme())
        assert segments[0].size_bytes == 42

    def test_missing_directory(self, tmp_path):
        segments, junk = scan_backups(str(tmp_path / "nope" / "app.log"), SequenceScheme())
        assert segments == []
        assert junk == []


class TestDetectScheme:
    def test_sequence_names(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log.3")
        _gzip(d, "app.log.12.gz")
        assert detect_scheme(os.path.join(d, "app.log")) == "sequence"

    def test_timestamp_names(self, tmp_path):
        d = str(tmp_path)
        _gzip(d, "app.log.20250115_120000.gz")
        assert detect_scheme(os.path.join(d, "app.log")) == "timestamp"

    def test_no_backups_uses_default(self, tmp_path):
        d = str(tmp_path)
        _touch(d, "app.log")
        assert detect_scheme(os.path.join(d, "app.log")) == "timestamp"
        assert detect_scheme(os.path.join(d, "app.log"), default="sequence") == "sequence"
