"""
File handling utilities for the data writer.

This module provides:
- Recursive discovery of game record files
- Output path validation before any data is written
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from go_ai.config import SGF_EXTENSION

logger = logging.getLogger(__name__)


def collect_files(dirs: Iterable, suffix: str = SGF_EXTENSION, max_files: Optional[int] = None) -> List[Path]:
    """
    Recursively collect files ending in suffix from every directory.

    Files are sorted within each directory tree so the list (and therefore a
    seeded run) does not depend on filesystem ordering.

    Args:
        dirs: Directories to scan
        suffix: File-name suffix to match (case-sensitive)
        max_files: Optional cap on the number of files returned

    Returns:
        List of matching file paths
    """
    files: List[Path] = []
    for directory in dirs:
        directory = Path(directory)
        if not directory.is_dir():
            raise ValueError(f"Not a directory: {directory}")
        found = sorted(p for p in directory.rglob(f"*{suffix}") if p.is_file() and p.name.endswith(suffix))
        logger.debug(f"Found {len(found)} {suffix} files in {directory}")
        files.extend(found)

    if max_files is not None:
        files = files[:max_files]
    return files


def validate_output_file(output_file: Path, min_free_gb: float = 1.0) -> None:
    """
    Validate that output_file can be created and warn about low disk space.

    Args:
        output_file: File that will be written
        min_free_gb: Warn when less disk space than this is free

    Raises:
        ValueError: If the parent directory is missing or not writable, or
            the path is an existing directory
    """
    output_file = Path(output_file)
    parent = output_file.parent if str(output_file.parent) else Path(".")

    if output_file.is_dir():
        raise ValueError(f"Output path is a directory: {output_file}")
    if not parent.is_dir():
        raise ValueError(f"Output directory does not exist: {parent}")
    if not os.access(parent, os.W_OK):
        raise ValueError(f"Output directory {parent} is not writable")

    total, used, free = shutil.disk_usage(parent)
    free_gb = free / (1024**3)
    if free_gb < min_free_gb:
        logger.warning(f"Low disk space: {free_gb:.1f}GB free in {parent}")
