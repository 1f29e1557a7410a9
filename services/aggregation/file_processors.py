"""
File processors - Run one input file through a parser and its consumer.

Each processor opens one file, drives the matching parser, hands the events to
their destination (dataset rows or split streams) and returns the file's
FileStat. Opening failures propagate as FileAccessFailure; later failures as
FileProcessingError with the partial FileStat attached.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from domain.config import ModeConfig, PipelineConfig, RunMode, SplitConfig
from domain.errors import FileProcessingError
from domain.statistics import FileStat
from services.output.event_router import EventRouter, RouteTarget
from services.output.schemas import lund_row, tagged_row
from services.parsing.file_accumulator import FileAccumulator
from services.parsing.lund_parser import LundParser
from services.parsing.roles import RoleAssigner
from services.parsing.tagged_parser import TaggedRecordParser
from services.parsing.tokenizer import TokenCursor

# Receives one dataset row per accepted event
EventSink = Callable[[dict], None]


class FileProcessor(ABC):
    """
    Base class for per-file processors.

    Subclasses implement _consume; opening the file and freezing the counters
    are shared.
    """

    def __init__(self, mode_config: ModeConfig, progress_interval: int = 10_000):
        self.mode_config = mode_config
        self.progress_interval = progress_interval
        self.events_accepted = 0
        self.role_assigner = RoleAssigner(mode_config)
        self.logger = logging.getLogger(self.__class__.__name__)

    def process(
        self,
        file_name: str,
        position: int,
        helicity: Optional[int] = None,
        budget: Optional[int] = None
    ) -> FileStat:
        """
        Process one input file.

        Args:
            file_name: Path of the input file
            position: Ordinal position in the file list
            helicity: Helicity assigned to this position
            budget: Maximum accepted events to take from this file, None for all

        Returns:
            FileStat for the file

        Raises:
            FileAccessFailure: If the file cannot be opened
            FileProcessingError: If processing fails after the file was opened;
                carries the partial FileStat
        """
        accumulator = FileAccumulator(file_name, position, helicity)
        with TokenCursor.open(file_name, echo=self.mode_config.debug_echo) as cursor:
            try:
                self._consume(cursor, accumulator, budget)
            except Exception as e:
                accumulator.record_truncation()
                raise FileProcessingError(file_name, accumulator.finalize(), e) from e
        return accumulator.finalize()

    @abstractmethod
    def _consume(self, cursor: TokenCursor, accumulator: FileAccumulator, budget: Optional[int]):
        """Drive the parser over an open file."""

    def _tick(self):
        """Count one accepted event across the run and log progress."""
        self.events_accepted += 1
        if self.events_accepted % self.progress_interval == 0:
            self.logger.info(f"Processed {self.events_accepted} events")

    @staticmethod
    def _budget_spent(accumulator: FileAccumulator, budget: Optional[int]) -> bool:
        return budget is not None and accumulator.events_accepted >= budget


class TaggedFileProcessor(FileProcessor):
    """Tagged-record file -> dataset rows. Every complete event is recorded."""

    def __init__(self, mode_config: ModeConfig, sink: EventSink, progress_interval: int = 10_000):
        super().__init__(mode_config, progress_interval)
        self.parser = TaggedRecordParser(mode_config, self.role_assigner)
        self.sink = sink

    def _consume(self, cursor, accumulator, budget):
        for event in self.parser.parse(cursor, accumulator):
            self.sink(tagged_row(event, accumulator.helicity))
            accumulator.record_accepted()
            self._tick()
            if self._budget_spent(accumulator, budget):
                break


class LundFileProcessor(FileProcessor):
    """Fixed-count file -> dataset rows. Events with any issue are rejected."""

    def __init__(self, mode_config: ModeConfig, sink: EventSink, progress_interval: int = 10_000):
        super().__init__(mode_config, progress_interval)
        self.parser = LundParser(mode_config, self.role_assigner)
        self.sink = sink

    def _consume(self, cursor, accumulator, budget):
        for event in self.parser.parse(cursor, accumulator):
            if not event.accepted:
                continue
            self.sink(lund_row(event))
            accumulator.record_accepted()
            self._tick()
            if self._budget_spent(accumulator, budget):
                break


class SplitFileProcessor(FileProcessor):
    """Fixed-count file -> proton / neutron streams for the file's position."""

    def __init__(
        self,
        mode_config: ModeConfig,
        split_config: SplitConfig,
        progress_interval: int = 10_000
    ):
        super().__init__(mode_config, progress_interval)
        self.parser = LundParser(mode_config, self.role_assigner)
        self.split_config = split_config
        self.output_files: list[str] = []

    def _consume(self, cursor, accumulator, budget):
        # Streams are only created once the input has opened
        with EventRouter(self.split_config, accumulator.position) as router:
            self.output_files.extend(router.output_paths)
            for event_number, event in enumerate(
                self.parser.parse(cursor, accumulator), start=1
            ):
                target = router.route(event, event_number)
                if target == RouteTarget.PROTON_ACTIVE:
                    accumulator.record_proton()
                    self._tick()
                elif target == RouteTarget.NEUTRON_ACTIVE:
                    accumulator.record_neutron()
                    self._tick()
                else:
                    accumulator.record_unclassified()
                if self._budget_spent(accumulator, budget):
                    break


def build_processor(config: PipelineConfig, sink: Optional[EventSink] = None) -> FileProcessor:
    """
    Build the processor for the configured mode.

    Args:
        config: Pipeline configuration
        sink: Row consumer, required for the dataset-writing modes

    Returns:
        FileProcessor instance
    """
    if config.mode == RunMode.SPLIT:
        return SplitFileProcessor(config.mode_config, config.split, config.progress_interval)

    if sink is None:
        raise ValueError(f"Mode {config.mode.value} needs an event sink")
    if config.mode == RunMode.HEPMC:
        return TaggedFileProcessor(config.mode_config, sink, config.progress_interval)
    return LundFileProcessor(config.mode_config, sink, config.progress_interval)
