import pytest

from rotlog.config import Config
from rotlog.writer import RotatingWriter


@pytest.fixture
def log_path(tmp_path):
    return str(tmp_path / "app.log")


@pytest.fixture
def make_config(log_path):
    def _make(**overrides):
        defaults = dict(
            path=log_path,
            max_size_bytes=100,
            max_backups=10,
            compress=False,
            naming_scheme="sequence",
        )
        defaults.update(overrides)
        return Config(**defaults)
    return _make


@pytest.fixture
def make_writer(make_config):
    """Build writers that are closed at teardown even if the test fails."""
    writers = []

    def _make(time_func=None, **overrides):
        writer = RotatingWriter(make_config(**overrides), time_func=time_func)
        writers.append(writer)
        return writer

    yield _make
    for writer in writers:
        writer.close()
