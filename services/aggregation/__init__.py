"""
Aggregation services.

Per-file processing and the cross-file fold into run totals.
"""

from .file_processors import (
    FileProcessor,
    TaggedFileProcessor,
    LundFileProcessor,
    SplitFileProcessor,
    build_processor,
)
from .aggregator import CrossFileAggregator, unique_adjacent

__all__ = [
    "FileProcessor",
    "TaggedFileProcessor",
    "LundFileProcessor",
    "SplitFileProcessor",
    "build_processor",
    "CrossFileAggregator",
    "unique_adjacent",
]
