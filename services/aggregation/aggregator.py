"""
CrossFileAggregator service - Folds per-file statistics into run totals.

Single responsibility: walk the file list in order, skip adjacent duplicate
names, assign each input its position and helicity, hand it to a
FileProcessor, and fold the resulting FileStat into the RunTotals.
"""

import logging
from contextlib import nullcontext
from typing import Iterable, Iterator, Optional

from tqdm import tqdm

from domain.config import PipelineConfig
from domain.errors import FileAccessFailure, FileProcessingError
from domain.statistics import FileStat, RunTotals
from .file_processors import FileProcessor


def unique_adjacent(file_names: Iterable[str]) -> Iterator[str]:
    """
    Drop names equal to the one directly before them.

    Only adjacent repeats are dropped; the same name appearing again later in
    the list is processed again.
    """
    previous: Optional[str] = None
    for name in file_names:
        if name == previous:
            continue
        previous = name
        yield name


class CrossFileAggregator:
    """
    Aggregates a run over the file list.

    Stateful service: totals, file_stats and cap_reached reflect every file
    folded so far, so they stay meaningful if a later file raises.
    """

    def __init__(self, config: PipelineConfig):
        """
        Initialize aggregator.

        Args:
            config: Pipeline configuration (helicity table, event cap, progress)
        """
        self.config = config
        self.totals = RunTotals()
        self.file_stats: list[FileStat] = []
        self.cap_reached = False
        self.logger = logging.getLogger(self.__class__.__name__)
        self._helicity = 0

    def helicity_for(self, position: int) -> int:
        """
        Helicity for a file position.

        Positions outside the configured table log a warning and keep the
        helicity of the previous file.
        """
        helicity = self.config.helicity.helicity_for(position)
        if helicity is None:
            self.logger.warning(
                f"Unknown file position {position}, keeping helicity {self._helicity}"
            )
        else:
            self._helicity = helicity
        return self._helicity

    def run(self, file_names: Iterable[str], processor: FileProcessor) -> RunTotals:
        """
        Process every file of the list.

        Args:
            file_names: File names in list order
            processor: Per-file processor for the configured mode

        Returns:
            RunTotals over all processed files
        """
        names = list(unique_adjacent(file_names))
        cap = self.config.mode_config.event_cap

        if not names:
            self.logger.warning("File list is empty, nothing to process")
            return self.totals

        with self._create_progress_bar(len(names)) as pbar:
            for position, file_name in enumerate(names):
                helicity = self.helicity_for(position)
                budget = None if cap is None else cap - self.totals.events

                self.logger.info(f"Reading from file: {file_name}")
                stat = self._process_file(processor, file_name, position, helicity, budget)
                self._fold(stat)

                if pbar is not None:
                    pbar.update(1)
                    pbar.set_postfix({"events": self.totals.events})

                if cap is not None and self.totals.events >= cap:
                    self.cap_reached = True
                    remaining = len(names) - position - 1
                    self.logger.info(
                        f"Event cap of {cap} reached, skipping {remaining} remaining file(s)"
                    )
                    break

        self._log_totals()
        return self.totals

    def _process_file(
        self,
        processor: FileProcessor,
        file_name: str,
        position: int,
        helicity: int,
        budget: Optional[int]
    ) -> FileStat:
        try:
            return processor.process(file_name, position, helicity, budget)
        except FileAccessFailure as e:
            self.logger.error(f"Skipping {file_name}: {e.reason}")
            return FileStat.unopened(file_name, position, e.reason, helicity)
        except FileProcessingError as e:
            # Rows handed on before the failure are already written
            self._fold(e.stat)
            raise

    def _fold(self, stat: FileStat):
        self.file_stats.append(stat)
        self.totals = self.totals.fold(stat)

        if not stat.opened:
            return

        message = (
            f"{stat.file_name}: {stat.events_accepted}/{stat.events_read} events accepted"
        )
        if self.config.writes_dataset:
            message += f", xsec={stat.xsec:.6g} +/- {stat.xsec_err:.6g}"
        else:
            message += (
                f" (proton {stat.proton_events}, neutron {stat.neutron_events}, "
                f"unclassified {stat.unclassified_events})"
            )
        if stat.validation_failures:
            message += f", {stat.validation_failures} validation failure(s)"
        if stat.truncated:
            message += ", truncated"
        self.logger.info(message)

    def _log_totals(self):
        totals = self.totals
        self.logger.info(f"Number of total events: {totals.events} (read {totals.events_read})")
        if self.config.writes_dataset:
            self.logger.info(f"Total cross-section: {totals.xsec:.6g} +/- {totals.xsec_err:.6g}")
        else:
            self.logger.info(f"Events with active proton: {totals.proton_events}")
            self.logger.info(f"Events with active neutron: {totals.neutron_events}")
        if totals.files_failed:
            self.logger.warning(f"{totals.files_failed} file(s) could not be opened")

    def _create_progress_bar(self, total: int):
        """
        Create progress bar or no-op context manager.

        Args:
            total: Total number of files

        Returns:
            Progress bar context manager or no-op
        """
        if self.config.show_progress:
            return tqdm(
                total=total,
                desc="Processing files",
                unit="file",
                dynamic_ncols=True,
                mininterval=1
            )
        return nullcontext()
