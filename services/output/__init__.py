"""
Output services.

Services responsible for writing converted events: the ROOT dataset and the
split-mode LUND streams.
"""

from .schemas import DatasetSchema, TAGGED_SCHEMA, LUND_SCHEMA, schema_for, tagged_row, lund_row
from .dataset_writer import DatasetWriter
from .event_router import EventRouter, RouteTarget, classify, format_event

__all__ = [
    "DatasetSchema",
    "TAGGED_SCHEMA",
    "LUND_SCHEMA",
    "schema_for",
    "tagged_row",
    "lund_row",
    "DatasetWriter",
    "EventRouter",
    "RouteTarget",
    "classify",
    "format_event",
]
