"""
File Operations
===============

Sorts a single file into a subdirectory named after its extension.
Used by both the startup backload and the live watcher so files present
at boot and files that arrive later are handled identically.
"""

from pathlib import Path
from typing import Optional, Tuple
import os
import time

from dirsorter.utils.logging_config import get_logger
from dirsorter.utils.exceptions import (
    DirectoryCreateError,
    FileHandlingError,
    MoveError,
    UnclassifiableFileError,
)

logger = get_logger(__name__)


def split_extension(file_name: str) -> Optional[str]:
    """Return the text after the last dot of a file name.

    Dotfiles without another dot (``.bashrc``), names ending in a dot and
    the special names ``.``/``..`` have no extension.

    Args:
        file_name: Bare file name, no directory part.

    Returns:
        Extension without the dot, case preserved, or None.
    """
    stem, dot, extension = file_name.rpartition(".")
    if not dot or not stem or not extension:
        return None
    return extension


class FileSorter:
    """Moves files into per-extension buckets under a target directory.

    Every call is independent: nothing is remembered between files.
    """

    def __init__(
        self,
        target_directory: Path,
        max_retries: int = 0,
        retry_delay: float = 0.5
    ):
        """Initialize the sorter.

        Args:
            target_directory: Absolute directory whose files are sorted.
            max_retries: Extra attempts for failed creates/moves in process().
            retry_delay: Delay in seconds between attempts.
        """
        self.target_directory = Path(target_directory)
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def classify(self, path: Path) -> Tuple[str, str]:
        """Extract the file name and extension of a candidate file.

        Args:
            path: Candidate file path.

        Returns:
            (file_name, extension) tuple.

        Raises:
            UnclassifiableFileError: If the path has no name or no extension.
        """
        path = Path(path)
        file_name = path.name
        if not file_name or file_name in (".", ".."):
            raise UnclassifiableFileError(
                "File name does not exist",
                file_path=str(path)
            )

        extension = split_extension(file_name)
        if extension is None:
            raise UnclassifiableFileError(
                "File extension does not exist",
                file_path=str(path)
            )
        return file_name, extension

    def bucket_for(self, extension: str) -> Path:
        """Return the bucket directory for an extension."""
        return self.target_directory / extension

    def ensure_directory(self, directory: Path, file_path: Optional[Path] = None) -> None:
        """Create a directory unless it already exists.

        Another process may create the same directory between the check
        and mkdir; that still counts as success.

        Raises:
            DirectoryCreateError: If the directory cannot be created.
        """
        if directory.exists():
            return

        logger.info(
            f"Directory {directory} does not exist. Creating...",
            extra={"directory": str(directory)}
        )
        try:
            directory.mkdir()
        except FileExistsError as e:
            if directory.is_dir():
                logger.debug(f"Directory {directory} created concurrently")
                return
            raise DirectoryCreateError(
                f"Path exists and is not a directory: {directory}",
                file_path=str(file_path) if file_path else None,
                directory=str(directory),
                cause=e
            )
        except OSError as e:
            raise DirectoryCreateError(
                f"Failed to create directory: {e}",
                file_path=str(file_path) if file_path else None,
                directory=str(directory),
                cause=e
            )

    def move_file(self, source: Path, destination: Path) -> bool:
        """Atomically rename source to destination, replacing any file there.

        The source is checked again right before the rename because it may
        have been deleted, moved or turned out to be a directory since it
        was discovered.

        Returns:
            True if the file was moved, False if it was skipped.

        Raises:
            MoveError: If the rename fails.
        """
        move_context = {"file_path": str(source), "destination": str(destination)}
        logger.debug(
            f"Attempting to move file from {source} to {destination}",
            extra=move_context
        )
        if not source.is_file():
            logger.warning(f"{source} is not a regular file. Skipping...", extra=move_context)
            return False

        try:
            os.replace(source, destination)
        except OSError as e:
            raise MoveError(
                f"Failed to move file: {e}",
                file_path=str(source),
                destination=str(destination),
                cause=e
            )
        return True

    def handle(self, path: Path) -> Optional[Path]:
        """Sort one candidate file into its extension bucket.

        Args:
            path: Candidate file path.

        Returns:
            Destination path if the file was moved, None if it was skipped.

        Raises:
            UnclassifiableFileError: If the file has no name or extension.
            DirectoryCreateError: If the bucket cannot be created.
            MoveError: If the rename fails.
        """
        path = Path(path)
        file_name, extension = self.classify(path)

        bucket = self.bucket_for(extension)
        self.ensure_directory(bucket, file_path=path)

        destination = bucket / file_name
        if not self.move_file(path, destination):
            return None

        logger.info(
            f"Moved: {file_name} -> {destination}",
            extra={"file_path": str(path), "destination": str(destination)}
        )
        return destination

    def process(self, path: Path) -> Optional[Path]:
        """Handle a file, retrying failed creates/moves if configured.

        Unclassifiable files are never retried. The last error is
        re-raised once attempts run out.
        """
        attempt = 0
        while True:
            try:
                return self.handle(path)
            except UnclassifiableFileError:
                raise
            except FileHandlingError as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Retrying {path} ({attempt}/{self.max_retries}) after: {e}",
                    extra=e.log_extra()
                )
                time.sleep(self.retry_delay)
