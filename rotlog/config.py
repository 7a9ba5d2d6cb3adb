"""Configuration module: frozen dataclass loaded from YAML and environment variables."""

import logging
import os
from dataclasses import dataclass, fields

import yaml

from rotlog.errors import ConfigError

logger = logging.getLogger(__name__)

NAMING_SCHEMES = ("timestamp", "sequence")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    path: str
    max_size_bytes: int
    max_backups: int
    compress: bool = False
    naming_scheme: str = "timestamp"
    max_age_days: int = 0  # 0 disables age-based retention
    archive_queue_size: int = 64
    shutdown_timeout: float = 10.0

    def validate(self) -> "Config":
        """Raise ConfigError on the first invalid field, otherwise return self."""
        if not self.path:
            raise ConfigError("path is required")
        if self.max_size_bytes <= 0:
            raise ConfigError(f"max_size_bytes must be positive, got {self.max_size_bytes}")
        if self.max_backups < 0:
            raise ConfigError(f"max_backups must be >= 0, got {self.max_backups}")
        if self.naming_scheme not in NAMING_SCHEMES:
            raise ConfigError(
                f"naming_scheme must be one of {NAMING_SCHEMES}, got {self.naming_scheme!r}"
            )
        if self.max_age_days < 0:
            raise ConfigError(f"max_age_days must be >= 0, got {self.max_age_days}")
        if self.archive_queue_size <= 0:
            raise ConfigError(
                f"archive_queue_size must be positive, got {self.archive_queue_size}"
            )
        return self

    @property
    def log_dir(self) -> str:
        return os.path.dirname(os.path.abspath(self.path))

    @property
    def log_filename(self) -> str:
        return os.path.basename(self.path)


def load_yaml_config(path: str | None) -> dict:
    """Load the ``rotlog`` section (or the whole document) from a YAML file.

    Returns an empty dict if no path is given or the file does not exist.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"expected a mapping in {path}, got {type(data).__name__}")
    logger.info("Loaded YAML config from %s", path)
    return data.get("rotlog", data) or {}


def _coerce(name: str, value):
    """Convert a raw YAML/env value to the type the Config field expects."""
    if name in ("path", "naming_scheme"):
        return str(value)
    if name == "compress":
        return _parse_bool(value)
    if name == "shutdown_timeout":
        return float(value)
    return int(value)


def load_config(yaml_path: str | None = None, **overrides) -> Config:
    """Build Config from defaults <- YAML file <- env vars <- keyword overrides.

    The YAML path defaults to ``ROTLOG_CONFIG``. ``MAX_FILE_SIZE_BYTES`` takes
    precedence over ``MAX_FILE_SIZE_MB``.
    """
    known = {f.name for f in fields(Config)}
    values: dict = {
        "path": "./logs/application.log",
        "max_size_bytes": 10 * 1024 * 1024,  # 10 MB
        "max_backups": 10,
    }

    yaml_data = load_yaml_config(yaml_path or os.environ.get("ROTLOG_CONFIG"))
    for key, value in yaml_data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        values[key] = value

    env_map = {
        "LOG_PATH": "path",
        "MAX_BACKUPS": "max_backups",
        "COMPRESSION_ENABLED": "compress",
        "NAMING_SCHEME": "naming_scheme",
        "MAX_AGE_DAYS": "max_age_days",
        "ARCHIVE_QUEUE_SIZE": "archive_queue_size",
    }
    for env_key, name in env_map.items():
        raw = os.environ.get(env_key)
        if raw is not None:
            values[name] = raw

    raw_bytes = os.environ.get("MAX_FILE_SIZE_BYTES")
    raw_mb = os.environ.get("MAX_FILE_SIZE_MB")

    try:
        if raw_bytes is not None:
            values["max_size_bytes"] = int(raw_bytes)
        elif raw_mb is not None:
            values["max_size_bytes"] = int(float(raw_mb) * 1024 * 1024)
        values.update(overrides)
        kwargs = {name: _coerce(name, value) for name, value in values.items()}
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config value: {exc}") from exc
    return Config(**kwargs).validate()

