"""
Path utilities for pipeline.

Handles the input file list and output locations.
"""

import os

from domain.errors import FileAccessFailure


def read_file_list(list_path: str) -> list[str]:
    """
    Read the input file list.

    One file name per line, read until end of input. Surrounding whitespace is
    stripped and blank lines are ignored; there is no quoting or comment syntax.

    Args:
        list_path: Path of the list file

    Returns:
        File names in list order, duplicates included

    Raises:
        FileAccessFailure: If the list itself cannot be opened
    """
    try:
        with open(list_path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise FileAccessFailure(list_path, e.strerror or str(e)) from e


def ensure_parent_dir(file_path: str) -> str:
    """
    Create the directory that will hold file_path, if it has one.

    Args:
        file_path: Path of a file about to be written

    Returns:
        The same path, for chaining
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return file_path
