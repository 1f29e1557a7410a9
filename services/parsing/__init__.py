"""
Parsing services.

Services responsible for reading generator event files and turning them into
events with assigned roles.
"""

from .tokenizer import TokenCursor
from .states import ParserState, BoundaryTracker
from .roles import RoleAssigner, RoleAssignment
from .file_accumulator import FileAccumulator
from .event_accumulator import EventAccumulator
from .tagged_parser import TaggedRecordParser
from .lund_parser import LundParser

__all__ = [
    "TokenCursor",
    "ParserState",
    "BoundaryTracker",
    "RoleAssigner",
    "RoleAssignment",
    "FileAccumulator",
    "EventAccumulator",
    "TaggedRecordParser",
    "LundParser",
]
