from __future__ import annotations

import argparse
import logging
from pathlib import Path

from temp_dirs.tempconfig import TempConfig
from temp_dirs.tempconfig import write_new_config
from temp_dirs.temperrors import StorePathError
from temp_dirs.temperrors import TempDirError
from temp_dirs.tempmanager import TempManager

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILENAME = "temp_dirs.log"

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Create a temporary directory. The directory is removed by "
        "a later clean once its duration has passed.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="The path to an optional configuration file.",
        default=None,
    )
    parser.add_argument(
        "--store-path",
        type=str,
        help="Directory of the metadata files. Default: temporary_directories "
        "next to the temp-dirs program (the Python interpreter under -m).",
        default=None,
    )
    parser.add_argument(
        "--debug",
        help="Enable debug logging.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--log-file",
        help="Enable logging to a file next to the metadata directory.",
        default=False,
        action="store_true",
    )

    subparsers = parser.add_subparsers(dest="action", required=True)

    create = subparsers.add_parser("create", help="Create a temporary directory.")
    create.add_argument(
        "-n",
        "--name",
        type=str,
        required=True,
        help="Name of the temporary directory to create.",
    )
    create.add_argument(
        "-d",
        "--duration",
        type=str,
        required=True,
        help="Duration the directory will live. Examples: 1d, 4w, 8m",
    )

    subparsers.add_parser("clean", help="Remove expired temporary directories.")

    make_config = subparsers.add_parser(
        "make-config",
        help="Create a default configuration file.",
    )
    make_config.add_argument("filename", type=str)

    return parser.parse_args(args)


def add_file_handler_to_logging(store_path: Path) -> None:
    """Add a file handler to the root logger next to the store path provided."""
    log_filepath = store_path.absolute().parent / LOG_FILENAME
    file_handler = logging.FileHandler(log_filepath)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logging.getLogger().addHandler(file_handler)


def main(*, cli_args: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(cli_args)

    if args.action == "make-config":
        write_new_config(args.filename)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    try:
        config = TempConfig(args.config)
        manager = TempManager(config, store_path=args.store_path)

    except (ValueError, StorePathError) as error:
        logger.error("%s", error)
        return 1

    if args.log_file:
        add_file_handler_to_logging(manager.store.store_path)

    if args.action == "create":
        try:
            manager.create(args.name, args.duration)

        except TempDirError as error:
            logger.error("Temporary directory couldn't be created: %s", error)
            return 1

        return 0

    report = manager.clean()

    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
