"""
PipelineExecutor - High-level pipeline orchestrator.

Wires together all handlers and executes the state machine.
"""

import json
import logging

from domain.config import PipelineConfig
from orchestration import PipelineState, PipelineContext, StateMachine
from orchestration.handlers import (
    FileListHandler,
    ConversionHandler,
    SplitHandler,
)
from utils.paths import ensure_parent_dir


class PipelineExecutor:
    """
    High-level pipeline executor.

    Responsible for:
    1. Building the state machine with handlers
    2. Running the pipeline
    3. Returning results
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.state_machine = self._build_state_machine()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> PipelineContext:
        """Execute the pipeline and return final context."""
        self.logger.info("Initializing pipeline execution")
        initial_context = self._create_initial_context()
        final_context = self.state_machine.run(initial_context)
        self._log_results(final_context)
        return final_context

    def save_run_summary(self, summary_path: str, context: PipelineContext):
        """
        Save the run summary and per-file statistics as JSON.

        Args:
            summary_path: Where to write the JSON file
            context: Final pipeline context after execution
        """
        stats = {
            "summary": context.get_summary(),
            "totals": context.totals.to_dict(),
            "files": [stat.to_dict() for stat in context.file_stats],
            "output_files": list(context.output_files),
        }

        with open(ensure_parent_dir(summary_path), "w") as f:
            json.dump(stats, f, indent=2, default=str)

        self.logger.info(f"Saved run summary to: {summary_path}")

    # ------------------------------------------------------------------
    # Pipeline internals
    # ------------------------------------------------------------------

    def _create_initial_context(self) -> PipelineContext:
        self.logger.info(f"Starting state: {PipelineState.IDLE}")
        return PipelineContext(config=self.config, current_state=PipelineState.IDLE)

    def _build_state_machine(self) -> StateMachine:
        self.logger.info("Building state machine with handlers")
        handlers = self._create_handlers()
        return StateMachine(handlers)

    def _create_handlers(self) -> dict:
        return {
            PipelineState.READING_FILE_LIST: FileListHandler(),
            PipelineState.CONVERTING: ConversionHandler(),
            PipelineState.SPLITTING: SplitHandler(),
        }

    def _log_results(self, context: PipelineContext):
        self.logger.info("=" * 60)
        self.logger.info("Pipeline Execution Summary")
        self.logger.info("=" * 60)

        summary = context.get_summary()
        for key, value in summary.items():
            self.logger.info(f"{key:30s}: {value}")

        if context.failed_files:
            self.logger.info("\nFiles that could not be opened:")
            for name in context.failed_files:
                self.logger.info(f"  - {name}")

        if context.output_files:
            self.logger.info("\nOutput files:")
            for path in context.output_files:
                self.logger.info(f"  - {path}")

        self.logger.info("=" * 60)
