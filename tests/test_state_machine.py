"""
Tests for StateMachine.

Tests default transitions, handler failures and illegal transitions.
"""

import pytest

from domain.config import PipelineConfig, RunMode
from orchestration import PipelineContext, PipelineState, StateMachine
from orchestration.handlers.base import StateHandler


def make_context(mode: RunMode = RunMode.LUND) -> PipelineContext:
    config = PipelineConfig(mode=mode, file_list_path="files.txt")
    return PipelineContext(config=config, current_state=PipelineState.IDLE)


class FixedHandler(StateHandler):
    """Handler that always moves to one state."""

    def __init__(self, next_state: PipelineState):
        super().__init__()
        self.next_state = next_state
        self.calls = 0

    def handle(self, context):
        self.calls += 1
        return context, self.next_state


class FailingHandler(StateHandler):
    def handle(self, context):
        raise OSError("file list unreadable")


class TestStateMachine:
    """Tests for StateMachine.run."""

    def test_states_without_handlers_use_default_path(self):
        """Test that a run with no handlers walks the default path to completion."""
        context = StateMachine({}).run(make_context())
        assert context.current_state == PipelineState.COMPLETED

    def test_split_mode_goes_through_splitting(self):
        """Test that split runs are routed to the SPLITTING handler."""
        splitting = FixedHandler(PipelineState.COMPLETED)
        converting = FixedHandler(PipelineState.COMPLETED)
        context = StateMachine({
            PipelineState.CONVERTING: converting,
            PipelineState.SPLITTING: splitting,
        }).run(make_context(RunMode.SPLIT))

        assert context.is_successful
        assert splitting.calls == 1
        assert converting.calls == 0

    def test_handler_error_fails_run(self):
        """Test that an exception in a handler ends the run as FAILED."""
        context = StateMachine({
            PipelineState.READING_FILE_LIST: FailingHandler(),
        }).run(make_context())

        assert context.current_state == PipelineState.FAILED
        assert "file list unreadable" in context.error_message
        assert context.error_details["state"] == str(PipelineState.READING_FILE_LIST)

    def test_invalid_transition_fails_run(self):
        """Test that a handler returning an unreachable state fails the run."""
        context = StateMachine({
            PipelineState.READING_FILE_LIST: FixedHandler(PipelineState.COMPLETED),
        }).run(make_context())

        assert context.current_state == PipelineState.FAILED
        assert "Invalid state transition" in context.error_message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
