"""
TaggedRecordParser service - Event-boundary state machine for HepMC3 files.

Single responsibility: turn the token stream of one tagged-record file into
TaggedEvent values, recording counters on a FileAccumulator as it goes.
"""

import logging
from typing import Iterator, Optional

from domain.config import ModeConfig
from domain.errors import EndOfInput, FormatViolation
from domain.events import ParticleRecord, RoleSlot, TaggedEvent, ValidationIssue
from services import consts
from .file_accumulator import FileAccumulator
from .roles import RoleAssigner
from .states import BoundaryTracker, ParserState
from .tagged_records import (
    EventHeaderBlock,
    LineTag,
    ParticleLine,
    Preamble,
    TrailerBlock,
    VertexLine,
)
from .tokenizer import TokenCursor


class _EventBuilder:
    """Particles and roles collected for the event currently open."""

    def __init__(self, header: EventHeaderBlock):
        self.header = header
        self.particles: list[ParticleRecord] = []
        self.roles: dict[RoleSlot, ParticleRecord] = {}
        self.issues: list[ValidationIssue] = []


class TaggedRecordParser:
    """
    Parses tagged-record files.

    States: START -> AWAITING_EVENT_HEADER -> IN_EVENT -> ... -> AT_TRAILER -> DONE.
    A line with an unrecognized tag between events is the end-of-listing
    sentinel and ends the file.
    """

    def __init__(self, mode_config: ModeConfig, role_assigner: Optional[RoleAssigner] = None):
        """
        Initialize parser.

        Args:
            mode_config: Generator family and afterburner flags
            role_assigner: Role lookup; built from mode_config if omitted
        """
        self.mode_config = mode_config
        self.role_assigner = role_assigner or RoleAssigner(mode_config)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._expected_slots = self.role_assigner.tagged_slots
        self._slot_positions = self.role_assigner.tagged_positions()

    def parse(self, cursor: TokenCursor, accumulator: FileAccumulator) -> Iterator[TaggedEvent]:
        """
        Yield every complete event of one file.

        Args:
            cursor: Token cursor positioned at the start of the file
            accumulator: Per-file counters to update

        Yields:
            TaggedEvent for each event with all eight particles read
        """
        tracker = BoundaryTracker()
        builder: Optional[_EventBuilder] = None

        try:
            Preamble.read(cursor, self.mode_config.afterburner)
            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
        except EndOfInput:
            self.logger.warning(f"{cursor.source}: file ends inside the preamble")
            accumulator.record_truncation()
            tracker.move_to(ParserState.DONE)
        except FormatViolation as e:
            accumulator.record_format_violation()
            self.logger.warning(f"Unreadable preamble: {e}")
            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
            self._resync(cursor, tracker)

        while not tracker.is_done:
            try:
                if tracker.state == ParserState.AWAITING_EVENT_HEADER:
                    if cursor.at_end():
                        # No trailer and no sentinel
                        tracker.move_to(ParserState.DONE)
                        continue
                    tag = LineTag.from_token(cursor.next_token())
                    builder = self._handle_boundary(tag, cursor, tracker, accumulator)
                    continue

                if tracker.state == ParserState.IN_EVENT:
                    event, builder = self._read_event_line(cursor, tracker, accumulator, builder)
                    if event is not None:
                        accumulator.record_issues(event.issues)
                        yield event
                    continue

            except EndOfInput:
                self._handle_end_of_input(cursor, tracker, accumulator)

            except FormatViolation as e:
                accumulator.record_format_violation()
                self.logger.warning(f"Format violation, discarding current record: {e}")
                builder = None
                self._resync(cursor, tracker)

    def _handle_boundary(
        self,
        tag: Optional[LineTag],
        cursor: TokenCursor,
        tracker: BoundaryTracker,
        accumulator: FileAccumulator
    ) -> Optional[_EventBuilder]:
        """Handle a tag seen between events. Returns a builder when an event opens."""
        if tag == LineTag.EVENT:
            accumulator.record_event_read()
            header = EventHeaderBlock.read(cursor, self.mode_config.afterburner)
            tracker.open_event()
            return _EventBuilder(header)

        if tag == LineTag.TRAILER:
            tracker.move_to(ParserState.AT_TRAILER)
            trailer = TrailerBlock.read(cursor)
            accumulator.set_cross_section(trailer.xsec, trailer.xsec_err)
            self.logger.debug(
                f"{cursor.source}: trailer xsec={trailer.xsec} +/- {trailer.xsec_err}"
            )
            tracker.move_to(ParserState.DONE)
            return None

        if tag is None:
            self.logger.debug(f"{cursor.source}: end-of-listing line reached")
            tracker.move_to(ParserState.DONE)
            return None

        raise FormatViolation(
            f"unexpected '{tag.value}' line outside an event",
            source=cursor.source, line_number=cursor.line_number, token=tag.value
        )

    def _read_event_line(
        self,
        cursor: TokenCursor,
        tracker: BoundaryTracker,
        accumulator: FileAccumulator,
        builder: _EventBuilder
    ) -> tuple[Optional[TaggedEvent], Optional[_EventBuilder]]:
        """
        Consume one line inside an event.

        Returns:
            (event, builder): the event once it is complete, and the builder
            for whichever event is open after this line
        """
        token = cursor.next_token()
        tag = LineTag.from_token(token)

        if tag == LineTag.VERTEX:
            VertexLine.read(cursor, self.mode_config.afterburner)
            return None, builder

        if tag == LineTag.PARTICLE:
            position = tracker.count_particle()
            particle = ParticleLine.read(cursor).to_record(position)
            self._assign(particle, builder, cursor.source)

            if position < consts.TAGGED_PARTICLES_PER_EVENT:
                return None, builder

            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
            return self._build_event(builder, cursor.source), None

        if tag in (LineTag.EVENT, LineTag.TRAILER):
            # Event ended early; the boundary itself is still good
            accumulator.record_format_violation()
            self.logger.warning(
                f"{cursor.source}:{cursor.line_number}: event {builder.header.event_number} "
                f"ended after {tracker.particles_seen} particles, discarding it"
            )
            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
            return None, self._handle_boundary(tag, cursor, tracker, accumulator)

        raise FormatViolation(
            f"unexpected token '{token}' inside event {builder.header.event_number}",
            source=cursor.source, line_number=cursor.line_number, token=token
        )

    def _assign(self, particle: ParticleRecord, builder: _EventBuilder, source: str):
        assignment = self.role_assigner.assign_tagged(particle)
        builder.particles.append(particle)
        if assignment.slot is not None:
            # Stored even on mismatch; the mismatch is reported, not fatal
            builder.roles[assignment.slot] = particle
        for issue in assignment.issues:
            builder.issues.append(issue)
            self.logger.warning(
                f"{source}: event {builder.header.event_number}: {issue.describe()}"
            )

    def _build_event(self, builder: _EventBuilder, source: str) -> TaggedEvent:
        missing = RoleAssigner.missing_slots(
            builder.roles, self._expected_slots, self._slot_positions
        )
        for issue in missing:
            self.logger.warning(
                f"{source}: event {builder.header.event_number}: {issue.describe()}"
            )

        event = TaggedEvent(
            event_number=builder.header.event_number,
            particles=tuple(builder.particles),
            roles=builder.roles,
            issues=tuple(builder.issues) + tuple(missing),
        )

        if self.mode_config.debug_echo:
            for slot, particle in event.roles.items():
                self.logger.debug(f"event {event.event_number} {slot}: {particle.four_vector}")

        return event

    def _handle_end_of_input(
        self,
        cursor: TokenCursor,
        tracker: BoundaryTracker,
        accumulator: FileAccumulator
    ):
        if tracker.state == ParserState.IN_EVENT:
            self.logger.warning(
                f"{cursor.source}: file truncated inside an event "
                f"after {tracker.particles_seen} particles"
            )
            accumulator.record_truncation()
        elif tracker.state == ParserState.AT_TRAILER:
            self.logger.warning(f"{cursor.source}: file truncated inside the trailer")
            accumulator.record_truncation()
        elif tracker.state == ParserState.AWAITING_EVENT_HEADER:
            self.logger.warning(f"{cursor.source}: file truncated inside an event header")
            accumulator.record_truncation()
        tracker.move_to(ParserState.DONE)

    def _resync(self, cursor: TokenCursor, tracker: BoundaryTracker):
        """Skip ahead to the next event or trailer line, or give up on the file."""
        if tracker.state == ParserState.AT_TRAILER:
            tracker.move_to(ParserState.DONE)
            return

        found = cursor.seek_line(lambda tokens: tokens[0] in consts.TAGGED_EVENT_TAGS)
        if not found:
            self.logger.warning(f"{cursor.source}: no further event boundary, abandoning file")
            tracker.move_to(ParserState.DONE)
            return

        self.logger.info(f"{cursor.source}:{cursor.line_number}: resynchronized")
        if tracker.state != ParserState.AWAITING_EVENT_HEADER:
            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
