"""
ConversionHandler - Handles the conversion state.

Runs every input through the parser for the configured mode, accumulates the
accepted events into chunks and writes them to the ROOT dataset.
"""

from orchestration.context import PipelineContext
from orchestration.states import PipelineState
from services.aggregation.aggregator import CrossFileAggregator
from services.aggregation.file_processors import build_processor
from services.output.dataset_writer import DatasetWriter
from services.output.schemas import schema_for
from services.parsing.event_accumulator import EventAccumulator
from .base import StateHandler


class ConversionHandler(StateHandler):
    """
    Handler for CONVERTING state.

    Uses CrossFileAggregator to walk the file list, EventAccumulator to create
    chunks, and DatasetWriter to save them.
    """

    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        """
        Convert all inputs and determine next state.

        The output file is closed, and the summary tree written, even if an
        input fails half way; whatever was accepted up to then is kept.

        Args:
            context: Current pipeline context

        Returns:
            Tuple of (updated_context, next_state)
        """
        self._log_state_entry(context)

        config = context.config
        schema = schema_for(config.mode)
        accumulator = EventAccumulator(
            chunk_size_events=config.output.chunk_size_events,
            vector_fields=schema.vector_fields,
            scalar_fields=schema.scalar_branches,
        )
        aggregator = CrossFileAggregator(config)

        with DatasetWriter(config.output, schema) as writer:

            def sink(row: dict):
                writer.write_chunk(accumulator.add_event(row))

            processor = build_processor(config, sink)
            error = None
            try:
                aggregator.run(context.file_names, processor)
            except Exception as e:
                self.logger.error(f"Conversion stopped: {e}", exc_info=True)
                error = e
            finally:
                writer.write_chunk(accumulator.flush())
                writer.write_summary(aggregator.totals)

        if writer.events_written != aggregator.totals.events:
            self.logger.warning(
                f"Wrote {writer.events_written} events but counted "
                f"{aggregator.totals.events} accepted"
            )

        updated_context = context.with_results(
            aggregator.file_stats, aggregator.totals, aggregator.cap_reached
        ).with_output_files([writer.output_path])

        if error is not None:
            updated_context = updated_context.with_error(
                message=f"Error in {context.current_state}: {error}",
                details={"state": str(context.current_state)},
            )
            return updated_context, PipelineState.FAILED

        next_state = self._determine_next_state(context)
        self._log_state_exit(context, next_state)
        return updated_context, next_state
