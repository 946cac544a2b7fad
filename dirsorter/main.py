"""
Directory Sorter - Main Application
===================================

Main entry point. Resolves the target directory, sorts the files already
in it, then watches it and sorts every new file as it arrives.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from dirsorter import __version__
from dirsorter.actions import FileSorter
from dirsorter.config import Config, resolve_target_directory
from dirsorter.config.settings import LOG_LEVELS
from dirsorter.monitoring import backload, BackloadReport, DirectoryWatcher
from dirsorter.utils.exceptions import DirSorterError
from dirsorter.utils.logging_config import setup_logging, get_logger, LoggingConfig

logger = get_logger(__name__)


class DirectoryOrganizer:
    """Runs the two startup phases in order: backload, then watch."""

    def __init__(self, config: Config, home: Optional[Path] = None):
        """Initialize the organizer.

        Args:
            config: Loaded configuration.
            home: Base for a relative target directory. Read from the
                  environment when not supplied.
        """
        self.config = config
        self.home = home
        self.target_directory: Optional[Path] = None
        self.sorter: Optional[FileSorter] = None
        self.watcher: Optional[DirectoryWatcher] = None
        self.report: Optional[BackloadReport] = None
        self._stop_requested = False

    def prepare(self) -> Path:
        """Resolve the target directory and build the sorter.

        Raises:
            ConfigurationError: If the target cannot be resolved.
        """
        self.target_directory = resolve_target_directory(
            self.config.watcher.target_directory,
            home=self.home
        )
        self.sorter = FileSorter(
            self.target_directory,
            max_retries=self.config.retry.max_retries,
            retry_delay=self.config.retry.retry_delay
        )
        logger.info(f"Target directory: {self.target_directory}")
        return self.target_directory

    def run(self, once: bool = False) -> None:
        """Backload existing files, then watch until stopped.

        Args:
            once: Only run the backload pass.

        Raises:
            DirSorterError: On fatal initialization failures.
        """
        target = self.prepare()

        if self.config.watcher.backload:
            self.report = backload(target, self.sorter)
        else:
            logger.info("Backload disabled, skipping existing files")

        if once or self._stop_requested:
            return

        self.watcher = DirectoryWatcher(
            target,
            self.sorter,
            poll_interval=self.config.watcher.poll_interval
        )
        self.watcher.start()
        # A stop that landed before self.watcher was assigned
        if self._stop_requested:
            self.watcher.request_stop()
        logger.info("Filewatcher successfully initialised!")
        self.watcher.run()

    def request_stop(self) -> None:
        """Stop watching at the next opportunity."""
        self._stop_requested = True
        if self.watcher is not None:
            self.watcher.request_stop()


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="dir-sorter",
        description="Sort files in a directory into subdirectories named after their extension"
    )
    parser.add_argument(
        "target_dir",
        nargs="?",
        help="Directory to organize (absolute, or relative to your home directory)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: ./config.yaml)"
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Override the configured log level"
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write JSON logs to the configured log directory"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Sort existing files and exit without watching"
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retry failed moves this many times"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point.

    Returns:
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load(args.config)
    except DirSorterError as e:
        setup_logging(LoggingConfig(level="INFO"))
        logger.error(f"Error loading configuration: {e}. Exiting...")
        return 1

    if args.target_dir:
        config.watcher.target_directory = args.target_dir
    if args.log_level:
        config.logging.level = args.log_level
    if args.log_file:
        config.logging.file_output = True
    if args.max_retries is not None:
        if args.max_retries < 0:
            parser.error("--max-retries cannot be negative")
        config.retry.max_retries = args.max_retries

    setup_logging(config.logging)

    organizer = DirectoryOrganizer(config)

    if not args.once:
        def signal_handler(sig, frame):
            logger.info(f"Received signal {sig}, shutting down...")
            organizer.request_stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    try:
        organizer.run(once=args.once)
    except DirSorterError as e:
        logger.error(f"Error initiating filewatcher {e}, exiting...", extra=e.log_extra())
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        organizer.request_stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
