"""
Domain models for the event-file converters.

Pure data structures with validation, no business logic.
"""

from .errors import FileAccessFailure, FileProcessingError, FormatViolation, EndOfInput
from .events import (
    RoleSlot,
    IssueKind,
    ParticleRecord,
    ValidationIssue,
    TaggedEvent,
    LundHeader,
    LundEvent,
    EventChunk,
    FOUR_VECTOR_FIELDS,
)
from .statistics import FileStat, RunTotals
from .config import (
    GeneratorFamily,
    RunMode,
    ModeConfig,
    HelicityConfig,
    OutputConfig,
    SplitConfig,
    PipelineConfig,
)

__all__ = [
    "FileAccessFailure",
    "FileProcessingError",
    "FormatViolation",
    "EndOfInput",
    "RoleSlot",
    "IssueKind",
    "ParticleRecord",
    "ValidationIssue",
    "TaggedEvent",
    "LundHeader",
    "LundEvent",
    "EventChunk",
    "FOUR_VECTOR_FIELDS",
    "FileStat",
    "RunTotals",
    "GeneratorFamily",
    "RunMode",
    "ModeConfig",
    "HelicityConfig",
    "OutputConfig",
    "SplitConfig",
    "PipelineConfig",
]
