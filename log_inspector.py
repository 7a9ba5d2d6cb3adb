"""CLI log inspector: list and read the segments of a rotated log stream."""

import argparse
import os
import sys

from rotlog.inspector import format_size, list_segments, read_chain, read_segment


def main(argv=None):
    parser = argparse.ArgumentParser(description="Inspect a rotated log stream")
    parser.add_argument("--log-path", default=os.environ.get("LOG_PATH", "./logs/application.log"),
                        help="Path of the active log file")
    parser.add_argument("--naming-scheme", choices=["timestamp", "sequence"],
                        default=os.environ.get("NAMING_SCHEME"),
                        help="Backup naming scheme used by the stream (detected if omitted)")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", action="store_true", help="List segments oldest first")
    group.add_argument("--read", metavar="FILENAME", help="Read one segment")
    group.add_argument("--chain", action="store_true",
                       help="Print every segment concatenated in creation order")
    args = parser.parse_args(argv)

    if args.list:
        segments = list_segments(args.log_path, args.naming_scheme)
        if not segments:
            print("No log files found.")
            return 0
        for segment in segments:
            print(f"  {segment.name}  ({format_size(segment.size_bytes)}, {segment.state.value})")

    elif args.read:
        path = os.path.join(os.path.dirname(os.path.abspath(args.log_path)), args.read)
        try:
            content = read_segment(path)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        sys.stdout.buffer.write(content)
        sys.stdout.flush()

    elif args.chain:
        sys.stdout.buffer.write(read_chain(args.log_path, args.naming_scheme))
        sys.stdout.flush()

    return 0


if __name__ == "__main__":
    sys.exit(main())
