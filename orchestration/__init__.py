"""
Orchestration layer for the conversion run.

State machine-based orchestration: read the file list, then convert or split,
with explicit state transitions.
"""

from .states import PipelineState, VALID_TRANSITIONS, is_valid_transition
from .context import PipelineContext
from .state_machine import StateMachine

__all__ = [
    "PipelineState",
    "VALID_TRANSITIONS",
    "is_valid_transition",
    "PipelineContext",
    "StateMachine",
]
