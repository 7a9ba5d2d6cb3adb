"""Rotating log demo service: writes synthetic logs through a RotatingWriter until stopped."""

import logging
import random
import signal
import string
import sys
import time
from datetime import datetime, timezone

from rotlog.config import load_config
from rotlog.errors import RotationError
from rotlog.writer import RotatingWriter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [rotlog] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


LEVEL_WEIGHTS = {"INFO": 70, "DEBUG": 15, "WARNING": 10, "ERROR": 5}


def make_record(seq: int) -> str:
    """One demo line with a random-length payload so rotations land mid-stream."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    level = random.choices(list(LEVEL_WEIGHTS), weights=list(LEVEL_WEIGHTS.values()))[0]
    payload = "".join(random.choices(string.ascii_lowercase, k=random.randint(16, 240)))
    return f"{stamp} {level:<7} seq={seq:08d} len={len(payload)} {payload}"


def main():
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    config = load_config()
    logger.info("Starting rotating log demo")
    logger.info(
        "Config: path=%s, max_size=%d bytes, max_backups=%d, compress=%s, naming=%s, max_age=%dd",
        config.path, config.max_size_bytes, config.max_backups,
        config.compress, config.naming_scheme, config.max_age_days,
    )

    writer = RotatingWriter(config)
    entries_written = 0
    last_rotations = 0

    try:
        while _running:
            try:
                writer.write_line(make_record(entries_written + 1))
            except RotationError as exc:
                logger.error("Dropping entry: %s", exc)
            else:
                entries_written += 1

            if writer.rotations != last_rotations:
                last_rotations = writer.rotations
                logger.info("Rotation #%d (%d entries written so far)", last_rotations, entries_written)

            time.sleep(0.05)
    except KeyboardInterrupt:
        pass

    writer.close()
    logger.info("Shut down cleanly. Total entries written: %d", entries_written)


if __name__ == "__main__":
    main()
