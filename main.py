"""Command-line trigger adapter: forward one batch read from a file or stdin."""

import argparse
import asyncio
import logging
import sys

from nrforwarder.config import load_settings
from nrforwarder.context import ExecutionContext
from nrforwarder.forwarder import forward


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Forward Azure telemetry to New Relic")
    parser.add_argument("batch", nargs="?", default=None, help="Batch file (default: stdin)")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--function-name", default="nrforwarder-cli")
    return parser.parse_args(argv)


def read_batch(path: str | None) -> bytes:
    if path is None:
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.config)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    context = ExecutionContext(function_name=args.function_name)
    logger.info("Starting invocation %s", context.invocation_id)

    results = asyncio.run(forward(read_batch(args.batch), context, settings))
    if results is None:
        return 1

    for kind, result in results.items():
        logger.info(
            "%s: sent=%d dropped=%d chunks=%d splits=%d",
            kind, result.sent, result.dropped, result.chunks, result.splits,
        )
    return 0 if all(r.dropped == 0 for r in results.values()) else 2


if __name__ == "__main__":
    sys.exit(main())
