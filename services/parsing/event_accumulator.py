"""
EventAccumulator service - Accumulates accepted events into chunks.

Single responsibility: Manage event accumulation and chunking logic.
"""

from typing import Mapping, Optional, Sequence

from domain.events import EventChunk


class EventAccumulator:
    """
    Accumulates per-event rows into chunks based on an event-count threshold.

    Stateful service that maintains current accumulation state.
    """

    def __init__(
        self,
        chunk_size_events: int,
        vector_fields: Sequence[str],
        scalar_fields: Mapping[str, type]
    ):
        """
        Initialize accumulator.

        Args:
            chunk_size_events: Number of events per chunk
            vector_fields: Names of the four-vector fields in each row
            scalar_fields: Scalar field names mapped to their numpy dtype
        """
        if chunk_size_events <= 0:
            raise ValueError(f"chunk_size_events must be positive, got {chunk_size_events}")

        self._threshold_events = chunk_size_events
        self._vector_fields = tuple(vector_fields)
        self._scalar_fields = dict(scalar_fields)
        self._current_rows: list[dict] = []
        self._chunk_index = 0
        self._total_events = 0

    def add_event(self, row: dict) -> Optional[EventChunk]:
        """
        Add one event row to the accumulator.

        Once the threshold is reached the accumulated rows are returned as a
        chunk and accumulation starts over.

        Args:
            row: Mapping of field name to four-vector tuple or scalar

        Returns:
            EventChunk if threshold reached, None otherwise
        """
        missing = [
            name for name in (*self._vector_fields, *self._scalar_fields)
            if name not in row
        ]
        if missing:
            raise ValueError(f"Event row is missing fields: {missing}")

        self._current_rows.append(row)
        self._total_events += 1

        if len(self._current_rows) < self._threshold_events:
            return None

        chunk = self._create_chunk()
        self._reset_accumulation()
        return chunk

    def flush(self) -> Optional[EventChunk]:
        """
        Force return any accumulated events as a chunk.

        Call this at the end of processing to get remaining events.

        Returns:
            EventChunk with accumulated events, or None if no events
        """
        if not self._current_rows:
            return None

        chunk = self._create_chunk()
        self._reset_accumulation()
        return chunk

    def _create_chunk(self) -> EventChunk:
        """Create a chunk from current rows."""
        chunk = EventChunk.from_rows(
            rows=self._current_rows,
            chunk_index=self._chunk_index,
            vector_fields=self._vector_fields,
            scalar_fields=self._scalar_fields,
        )
        self._chunk_index += 1
        return chunk

    def _reset_accumulation(self):
        """Reset accumulation state for next chunk."""
        self._current_rows = []

    @property
    def pending_events(self) -> int:
        """Get number of events currently accumulated."""
        return len(self._current_rows)

    @property
    def total_events(self) -> int:
        """Get number of events added so far, flushed or not."""
        return self._total_events

    @property
    def chunk_index(self) -> int:
        """Get current chunk index (number of chunks yielded so far)."""
        return self._chunk_index
