"""
Base state handler.

Abstract base class for all state handlers.
"""

from abc import ABC, abstractmethod
import logging

from orchestration.context import PipelineContext
from orchestration.states import PipelineState


def next_state_for(context: PipelineContext) -> PipelineState:
    """
    Determine next state based on configuration.

    IDLE -> READING_FILE_LIST -> CONVERTING (hepmc / lund) or SPLITTING (split)
    -> COMPLETED

    Args:
        context: Current pipeline context

    Returns:
        Next pipeline state
    """
    current = context.current_state

    if current == PipelineState.IDLE:
        return PipelineState.READING_FILE_LIST

    if current == PipelineState.READING_FILE_LIST:
        if context.config.writes_dataset:
            return PipelineState.CONVERTING
        return PipelineState.SPLITTING

    # CONVERTING and SPLITTING are the last working states
    return PipelineState.COMPLETED


class StateHandler(ABC):
    """
    Base class for state handlers.

    Each state handler implements the logic for transitioning
    from one state to the next.
    """

    def __init__(self):
        """Initialize state handler."""
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def handle(self, context: PipelineContext) -> tuple[PipelineContext, PipelineState]:
        """
        Handle the current state and determine next state.

        Args:
            context: Current pipeline context

        Returns:
            Tuple of (updated_context, next_state)

        Raises:
            Exception: If state handling fails
        """
        pass

    def _determine_next_state(self, context: PipelineContext) -> PipelineState:
        return next_state_for(context)

    def _log_state_entry(self, context: PipelineContext):
        """Log entry to state."""
        self.logger.info(f"Entering state: {context.current_state}")

    def _log_state_exit(self, context: PipelineContext, next_state: PipelineState):
        """Log exit from state."""
        self.logger.info(
            f"Exiting state: {context.current_state} → {next_state}"
        )
