"""
Tests for EventAccumulator service.

Tests that event accumulation and chunking works correctly.
"""

import awkward as ak
import numpy as np
import pytest

from services.parsing.event_accumulator import EventAccumulator


VECTOR_FIELDS = ["ebeam", "recoil"]
SCALAR_FIELDS = {"helicity": np.int32}


def make_row(i: int, helicity: int = 0) -> dict:
    return {
        "ebeam": (0.0, 0.0, -10.0 - i, 10.0 + i),
        "recoil": (0.1 * i, 0.2, 5.0, 6.0),
        "helicity": helicity,
    }


def make_accumulator(chunk_size_events: int = 3) -> EventAccumulator:
    return EventAccumulator(chunk_size_events, VECTOR_FIELDS, SCALAR_FIELDS)


class TestEventAccumulator:
    """Tests for EventAccumulator service."""

    def test_create_accumulator(self):
        """Test creating accumulator with a valid threshold."""
        acc = make_accumulator()
        assert acc.pending_events == 0
        assert acc.total_events == 0
        assert acc.chunk_index == 0

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_threshold_fails(self, size):
        """Test that a non-positive threshold raises ValueError."""
        with pytest.raises(ValueError, match="chunk_size_events must be positive"):
            make_accumulator(size)

    def test_add_below_threshold(self):
        """Test that no chunk is returned before the threshold."""
        acc = make_accumulator(3)

        assert acc.add_event(make_row(0)) is None
        assert acc.add_event(make_row(1)) is None
        assert acc.pending_events == 2

    def test_threshold_yields_chunk(self):
        """Test that reaching the threshold yields a chunk and resets."""
        acc = make_accumulator(2)
        acc.add_event(make_row(0))
        chunk = acc.add_event(make_row(1, helicity=1))

        assert chunk is not None
        assert chunk.event_count == 2
        assert chunk.chunk_index == 0
        assert ak.to_list(chunk.events["helicity"]) == [0, 1]
        assert ak.to_list(chunk.events["ebeam"]["E"]) == [10.0, 11.0]
        assert acc.pending_events == 0
        assert acc.chunk_index == 1

    def test_chunk_indices_increase(self):
        """Test that consecutive chunks are numbered in order."""
        acc = make_accumulator(1)
        chunks = [acc.add_event(make_row(i)) for i in range(3)]
        assert [c.chunk_index for c in chunks] == [0, 1, 2]

    def test_flush_returns_remaining(self):
        """Test that flush returns the partial chunk."""
        acc = make_accumulator(10)
        for i in range(4):
            acc.add_event(make_row(i))

        chunk = acc.flush()

        assert chunk.event_count == 4
        assert acc.pending_events == 0
        assert acc.total_events == 4

    def test_flush_empty(self):
        """Test that flushing with nothing pending returns None."""
        assert make_accumulator().flush() is None

    def test_missing_field_rejected(self):
        """Test that a row without every schema field is refused."""
        acc = make_accumulator()
        row = make_row(0)
        del row["recoil"]

        with pytest.raises(ValueError, match="missing fields"):
            acc.add_event(row)
        assert acc.total_events == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
