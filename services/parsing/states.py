"""
Parser states.

Explicit state enumeration for the event-boundary state machines.
"""

from enum import Enum, auto


class ParserState(Enum):
    """
    States of an event-boundary parser within one file.

    AT_TRAILER is only reachable in the tagged-record format.
    """

    START = auto()
    AWAITING_EVENT_HEADER = auto()
    IN_EVENT = auto()
    AT_TRAILER = auto()
    DONE = auto()

    def is_terminal(self) -> bool:
        return self == ParserState.DONE

    def __str__(self) -> str:
        return self.name


# Valid state transitions
VALID_TRANSITIONS = {
    ParserState.START: {
        ParserState.AWAITING_EVENT_HEADER,
        ParserState.DONE,
    },
    ParserState.AWAITING_EVENT_HEADER: {
        ParserState.IN_EVENT,
        ParserState.AT_TRAILER,
        ParserState.DONE,
    },
    ParserState.IN_EVENT: {
        ParserState.IN_EVENT,
        ParserState.AWAITING_EVENT_HEADER,
        ParserState.DONE,
    },
    ParserState.AT_TRAILER: {
        ParserState.DONE,
    },
    ParserState.DONE: set(),  # Terminal
}


def is_valid_transition(from_state: ParserState, to_state: ParserState) -> bool:
    """
    Check if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is valid
    """
    return to_state in VALID_TRANSITIONS.get(from_state, set())


class BoundaryTracker:
    """Holds the current parser state and rejects illegal transitions."""

    def __init__(self):
        self.state = ParserState.START
        self.particles_seen = 0

    def move_to(self, new_state: ParserState):
        if not is_valid_transition(self.state, new_state):
            raise RuntimeError(f"Invalid parser transition: {self.state} → {new_state}")
        if new_state != ParserState.IN_EVENT:
            self.particles_seen = 0
        self.state = new_state

    def open_event(self):
        self.move_to(ParserState.IN_EVENT)
        self.particles_seen = 0

    def count_particle(self) -> int:
        if self.state != ParserState.IN_EVENT:
            raise RuntimeError(f"Particle counted outside an event (state {self.state})")
        self.particles_seen += 1
        return self.particles_seen

    @property
    def is_done(self) -> bool:
        return self.state.is_terminal()
