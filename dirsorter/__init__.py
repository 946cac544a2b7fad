"""
Directory Sorter
================

Watches a directory and moves every file that lands in it into a
subdirectory named after the file's extension.

Features:
- Startup backload of files already present
- Live, non-recursive watching via watchdog
- Idempotent bucket creation and atomic, last-writer-wins moves
"""

__version__ = "0.1.0"
