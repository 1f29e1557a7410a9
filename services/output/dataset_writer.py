"""
DatasetWriter service - Writes event chunks to a ROOT file.

Single responsibility: own the output ROOT file for a conversion run, append
event chunks to the event tree, and write the one-entry summary tree.
"""

import logging
from typing import Optional

import awkward as ak
import numpy as np
import uproot

from domain.config import OutputConfig
from domain.events import FOUR_VECTOR_FIELDS, EventChunk
from domain.statistics import RunTotals
from utils.paths import ensure_parent_dir
from .schemas import DatasetSchema


class DatasetWriter:
    """
    Context manager around an uproot output file.

    The event tree is created on entry with fixed branch types, so an empty
    run still produces a valid (empty) tree.
    """

    def __init__(self, output_config: OutputConfig, schema: DatasetSchema):
        """
        Initialize writer.

        Args:
            output_config: Output path and tree names
            schema: Branch layout of the event tree
        """
        self.output_config = output_config
        self.schema = schema
        self.events_written = 0
        self.chunks_written = 0
        self.logger = logging.getLogger(self.__class__.__name__)

        self._file = None
        self._tree = None

    @property
    def output_path(self) -> str:
        return self.output_config.output_path

    def __enter__(self) -> 'DatasetWriter':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self):
        self._file = uproot.recreate(ensure_parent_dir(self.output_path))
        self._tree = self._file.mktree(
            self.output_config.event_tree_name,
            self.schema.branch_types(),
        )
        self.logger.info(
            f"Opened {self.output_path} "
            f"(event tree '{self.output_config.event_tree_name}')"
        )

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None
            self._tree = None

    def flatten(self, chunk: EventChunk) -> dict[str, np.ndarray]:
        """
        Flatten a chunk's records to one numpy array per branch.

        Args:
            chunk: EventChunk whose vector fields hold Momentum4D records

        Returns:
            Dictionary of branch name to array
        """
        branches = {}
        for name in self.schema.vector_fields:
            vectors = chunk.events[name]
            for component in FOUR_VECTOR_FIELDS:
                branches[f"{name}_{component}"] = ak.to_numpy(vectors[component])
        for name, dtype in self.schema.scalar_branches.items():
            branches[name] = ak.to_numpy(chunk.events[name]).astype(dtype)
        return branches

    def write_chunk(self, chunk: Optional[EventChunk]):
        """Append a chunk to the event tree. Empty or missing chunks are ignored."""
        if chunk is None or chunk.event_count == 0:
            return
        if self._tree is None:
            raise RuntimeError("DatasetWriter is not open")

        self._tree.extend(self.flatten(chunk))
        self.events_written += chunk.event_count
        self.chunks_written += 1
        self.logger.debug(
            f"Wrote chunk {chunk.chunk_index} ({chunk.event_count} events, "
            f"{self.events_written} total)"
        )

    def write_summary(self, totals: RunTotals):
        """Write the one-entry summary tree with the run's combined cross-section."""
        if self._file is None:
            raise RuntimeError("DatasetWriter is not open")

        self._file[self.output_config.info_tree_name] = {
            "xsec_total": np.array([totals.xsec], dtype=np.float64),
            "xsec_total_err": np.array([totals.xsec_err], dtype=np.float64),
            "events_total": np.array([totals.events], dtype=np.int64),
            "events_read": np.array([totals.events_read], dtype=np.int64),
        }
        self.logger.info(
            f"Wrote summary tree '{self.output_config.info_tree_name}': "
            f"xsec={totals.xsec:.6g} +/- {totals.xsec_err:.6g}, events={totals.events}"
        )
