"""
State handlers for pipeline execution.

Each handler implements logic for a specific pipeline state.
"""

from .base import StateHandler, next_state_for
from .file_list_handler import FileListHandler
from .conversion_handler import ConversionHandler
from .split_handler import SplitHandler

__all__ = [
    "StateHandler",
    "next_state_for",
    "FileListHandler",
    "ConversionHandler",
    "SplitHandler",
]
