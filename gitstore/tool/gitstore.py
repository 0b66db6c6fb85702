"""Command line tool for reading, writing and syncing a gitstore."""

import argparse
import asyncio
import logging
import sys
import traceback

from gitstore.config import load_env_files
from gitstore.exceptions import GitstoreException
from . import read, status, sync, write

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for a configuration store mirrored to git.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    status.StatusAction.register(subparsers)
    read.ReadAction.register(subparsers)
    write.WriteAction.register(subparsers)
    sync.SyncAction.register(subparsers)
    return parser


def main() -> None:
    """Gitstore command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    load_env_files()

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except GitstoreException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("gitstore error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
