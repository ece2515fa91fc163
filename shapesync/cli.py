# ==============================================
# CLI: Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Provides command-line interface to run the subscriber.
#
# COMMANDS:
# ---------
# 1. Stream data points from the DATA_STREAM_URL endpoint:
#    python -m shapesync.cli stream --count 100
#
# 2. Load a JSON-lines file of data points:
#    python -m shapesync.cli load datapoints.jsonl
#
# 3. Show the shapes the database already holds:
#    python -m shapesync.cli discover
#
#   -v on any command logs every statement (DEBUG).
#   Connection settings come from the environment / .env
#   (see shapesync.config).
#
# ==============================================

import argparse
import json
import logging
import sys
from typing import List, Optional

from shapesync.config import get_config
from shapesync.errors import ShapeSyncError
from shapesync.logging_setup import setup_logging
from shapesync.pipeline import StreamingPipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shapesync",
        description="Keep MySQL / MariaDB tables in step with the shapes of incoming data points.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")

    commands = parser.add_subparsers(dest="command", required=True)

    stream = commands.add_parser("stream", help="stream data points from DATA_STREAM_URL")
    stream.add_argument("--count", type=int, default=None, help="stop after this many records")

    load = commands.add_parser("load", help="load a JSON-lines file of data points")
    load.add_argument("file", help="path to the .jsonl file")

    commands.add_parser("discover", help="print the shapes known to the database")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config()
    setup_logging(config.log_level, verbose=args.verbose)

    try:
        with StreamingPipeline(config=config) as pipeline:
            if args.command == "stream":
                result = pipeline.start_streaming(max_records=args.count)
            elif args.command == "load":
                result = pipeline.load_file(args.file)
            else:
                result = [s.to_dict() for s in pipeline.subscriber.discover_shapes()]
    except ShapeSyncError as e:
        logger.error("%s", e)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
