"""
SplitHandler - Handles the splitting state.

Routes every fixed-count event to the proton or neutron stream of its input
file.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from services.aggregation.aggregator import CrossFileAggregator
from services.aggregation.file_processors import SplitFileProcessor
from .base import StateHandler


class SplitHandler(StateHandler):
    """Handler for SPLITTING state."""

    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        """
        Split all inputs and determine next state.

        Args:
            context: Current pipeline context

        Returns:
            Tuple of (updated_context, next_state)
        """
        self._log_state_entry(context)

        config = context.config
        processor = SplitFileProcessor(config.mode_config, config.split, config.progress_interval)
        aggregator = CrossFileAggregator(config)

        error = None
        try:
            aggregator.run(context.file_names, processor)
        except Exception as e:
            self.logger.error(f"Splitting stopped: {e}", exc_info=True)
            error = e

        updated_context = context.with_results(
            aggregator.file_stats, aggregator.totals, aggregator.cap_reached
        ).with_output_files(processor.output_files)

        if error is not None:
            updated_context = updated_context.with_error(
                message=f"Error in {context.current_state}: {error}",
                details={"state": str(context.current_state)},
            )
            return updated_context, PipelineState.FAILED

        next_state = self._determine_next_state(context)
        self._log_state_exit(context, next_state)
        return updated_context, next_state
