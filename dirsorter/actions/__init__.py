"""Actions module for sorting files into extension buckets."""

from .file_operations import FileSorter, split_extension

__all__ = [
    "FileSorter",
    "split_extension",
]
