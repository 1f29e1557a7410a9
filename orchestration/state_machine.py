"""
State machine for the conversion run.

Steps the context through IDLE -> READING_FILE_LIST -> CONVERTING or SPLITTING
-> COMPLETED, failing on any handler error or illegal transition.
"""

import logging
from typing import Dict

from .context import PipelineContext
from .states import PipelineState, is_valid_transition
from .handlers.base import StateHandler, next_state_for


class StateMachine:
    """Runs state handlers until the context reaches a terminal state."""

    def __init__(self, handlers: Dict[PipelineState, StateHandler]):
        """
        Args:
            handlers: Handler for each working state; states without one
                advance to their default successor
        """
        self.handlers = handlers
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, initial_context: PipelineContext) -> PipelineContext:
        """
        Run until COMPLETED or FAILED.

        The transition graph has no cycles, so every step moves forward.

        Args:
            initial_context: Context in the IDLE state

        Returns:
            Final pipeline context
        """
        context = initial_context
        self.logger.info(f"Starting run '{context.config.run_name}' ({context.config.mode.value})")

        while not context.is_terminal:
            try:
                context = self._step(context)
            except Exception as e:
                self.logger.error(f"Error in state {context.current_state}: {e}", exc_info=True)
                context = context.with_error(
                    message=f"Error in {context.current_state}: {e}",
                    details={"state": str(context.current_state)}
                )

        if context.is_successful:
            self.logger.info(f"Run finished in {context.elapsed_time:.1f}s")
        else:
            self.logger.error(f"Run failed: {context.error_message}")
        return context

    def _step(self, context: PipelineContext) -> PipelineContext:
        current_state = context.current_state
        handler = self.handlers.get(current_state)

        if handler is None:
            updated_context, next_state = context, next_state_for(context)
        else:
            updated_context, next_state = handler.handle(context)

        if not is_valid_transition(current_state, next_state):
            return updated_context.with_error(
                message=f"Invalid state transition: {current_state} -> {next_state}"
            )

        self.logger.info(f"Transition: {current_state} -> {next_state}")
        return updated_context.with_state(next_state)
