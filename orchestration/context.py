"""
Pipeline context.

Immutable context object passed between state handlers.
"""

from dataclasses import dataclass, field, replace
from typing import Optional
from datetime import datetime

from domain.config import PipelineConfig
from domain.statistics import FileStat, RunTotals
from .states import PipelineState


@dataclass(frozen=True)
class PipelineContext:
    """
    Immutable context for pipeline execution.

    Contains all state needed for pipeline execution.
    Each state handler returns a new context with updated fields.
    """

    # Configuration
    config: PipelineConfig

    # Current state
    current_state: PipelineState

    # Execution metadata
    start_time: datetime = field(default_factory=datetime.now)

    # Data accumulated during pipeline
    file_names: tuple[str, ...] = field(default_factory=tuple)
    file_stats: tuple[FileStat, ...] = field(default_factory=tuple)
    output_files: tuple[str, ...] = field(default_factory=tuple)

    # Statistics
    totals: RunTotals = field(default_factory=RunTotals)
    cap_reached: bool = False

    # Error tracking
    error_message: Optional[str] = None
    error_details: Optional[dict] = None

    def with_state(self, new_state: PipelineState) -> 'PipelineContext':
        """
        Return new context with updated state.

        Args:
            new_state: New pipeline state

        Returns:
            New PipelineContext with updated state
        """
        return replace(self, current_state=new_state)

    def with_file_names(self, file_names: list[str]) -> 'PipelineContext':
        """
        Return new context with the input file names, in list order.

        Args:
            file_names: File names as read from the file list

        Returns:
            New PipelineContext with file names
        """
        return replace(self, file_names=tuple(file_names))

    def with_results(
        self,
        file_stats: list[FileStat],
        totals: RunTotals,
        cap_reached: bool = False
    ) -> 'PipelineContext':
        """
        Return new context with per-file statistics and run totals.

        Args:
            file_stats: FileStat for every input handled, in order
            totals: RunTotals folded over file_stats
            cap_reached: Whether the event cap stopped the run early

        Returns:
            New PipelineContext with results
        """
        return replace(
            self,
            file_stats=tuple(file_stats),
            totals=totals,
            cap_reached=cap_reached,
        )

    def with_output_files(self, files: list[str]) -> 'PipelineContext':
        """
        Return new context with output files.

        Args:
            files: List of written output paths

        Returns:
            New PipelineContext with output files
        """
        return replace(self, output_files=tuple(files))

    def with_error(self, message: str, details: Optional[dict] = None) -> 'PipelineContext':
        """
        Return new context with error information.

        Args:
            message: Error message
            details: Optional error details dict

        Returns:
            New PipelineContext with error information
        """
        return replace(
            self,
            current_state=PipelineState.FAILED,
            error_message=message,
            error_details=details or {}
        )

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        return (datetime.now() - self.start_time).total_seconds()

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self.current_state.is_terminal()

    @property
    def is_successful(self) -> bool:
        """Check if pipeline completed successfully."""
        return self.current_state == PipelineState.COMPLETED

    @property
    def has_error(self) -> bool:
        """Check if pipeline failed."""
        return self.current_state == PipelineState.FAILED

    @property
    def failed_files(self) -> list[str]:
        """Names of inputs that could not be opened."""
        return [s.file_name for s in self.file_stats if not s.opened]

    def get_summary(self) -> dict:
        """
        Get summary of pipeline execution.

        Returns:
            Dict with execution summary
        """
        return {
            "state": str(self.current_state),
            "mode": self.config.mode.value,
            "elapsed_time_sec": self.elapsed_time,
            "start_time": self.start_time.isoformat(),
            "files_listed": len(self.file_names),
            "files_processed": self.totals.files_processed,
            "files_failed": self.totals.files_failed,
            "events_total": self.totals.events,
            "events_read": self.totals.events_read,
            "xsec_total": self.totals.xsec,
            "xsec_total_err": self.totals.xsec_err,
            "cap_reached": self.cap_reached,
            "output_files_count": len(self.output_files),
            "has_error": self.has_error,
            "error_message": self.error_message,
            "is_successful": self.is_successful,
        }
