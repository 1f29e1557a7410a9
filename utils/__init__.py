"""
Utility modules for pipeline.
"""

from .paths import (
    read_file_list,
    ensure_parent_dir,
)

__all__ = [
    "read_file_list",
    "ensure_parent_dir",
]
