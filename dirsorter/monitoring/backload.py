"""
Backload
========

One-shot scan of the target directory at startup. Sorts every regular
file that was already there before the watcher was armed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from dirsorter.actions.file_operations import FileSorter
from dirsorter.utils.exceptions import DirectoryListError, DirSorterError
from dirsorter.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class BackloadReport:
    """Outcome of a backload pass."""

    moved: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        """Number of regular files considered."""
        return self.moved + self.skipped + self.failed

    def to_dict(self) -> Dict:
        """Convert report to dictionary."""
        return {
            "moved": self.moved,
            "skipped": self.skipped,
            "failed": self.failed,
            "total": self.total,
        }


def list_entries(target_directory: Path) -> List[Path]:
    """List the immediate entries of the target directory.

    Raises:
        DirectoryListError: If the directory cannot be enumerated.
    """
    try:
        return sorted(Path(target_directory).iterdir())
    except OSError as e:
        raise DirectoryListError(
            f"Cannot list target directory: {e}",
            directory=str(target_directory),
            cause=e
        )


def backload(target_directory: Path, sorter: FileSorter) -> BackloadReport:
    """Sort every regular file currently in the target directory.

    Subdirectories, including buckets left by a previous run, are not
    entered. A failure on one file never stops the scan.

    Args:
        target_directory: Directory to scan.
        sorter: Sorter shared with the live watcher.

    Returns:
        Counts of moved, skipped and failed files.

    Raises:
        DirectoryListError: If the directory itself cannot be listed.
    """
    report = BackloadReport()
    entries = list_entries(target_directory)
    logger.info(f"Backloading {len(entries)} entries from {target_directory}")

    for path in entries:
        if not path.is_file():
            continue
        try:
            destination = sorter.process(path)
        except DirSorterError as e:
            logger.error(
                f"Error handling file {path}: {e}. Skipping file...",
                extra={"file_path": str(path), **e.log_extra()}
            )
            report.failed += 1
            continue

        if destination is None:
            report.skipped += 1
        else:
            report.moved += 1

    logger.info(
        f"Backload complete: {report.moved} moved, "
        f"{report.skipped} skipped, {report.failed} failed"
    )
    return report
