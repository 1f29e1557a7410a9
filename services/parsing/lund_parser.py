"""
LundParser service - Event-boundary state machine for fixed-count files.

Single responsibility: turn the token stream of one LUND file into LundEvent
values. Every event is a 10-field header followed by exactly N particle lines
of 14 fields each.
"""

import logging
from typing import Iterator, Optional

from domain.config import ModeConfig
from domain.errors import EndOfInput, FormatViolation
from domain.events import LundEvent, LundHeader, ParticleRecord, RoleSlot, ValidationIssue
from services import consts
from .file_accumulator import FileAccumulator
from .roles import RoleAssigner
from .states import BoundaryTracker, ParserState
from .tokenizer import TokenCursor


def read_lund_header(cursor: TokenCursor) -> LundHeader:
    """
    Read N i1 i2 i3 i4 i5 beamE target i7 xsec.

    Raises:
        FormatViolation: If a field has the wrong type or N is negative
    """
    ints = [cursor.next_int() for _ in range(6)]
    beam_energy = cursor.next_float()
    ints += [cursor.next_int(), cursor.next_int()]
    xsec = cursor.next_float()
    try:
        return LundHeader(tuple(ints), (beam_energy, xsec))
    except ValueError as e:
        raise FormatViolation(str(e), source=cursor.source, line_number=cursor.line_number) from e


def read_lund_particle(cursor: TokenCursor, position: int) -> ParticleRecord:
    """
    Read one particle line: six integers, then eight reals.

    index status i2 pid parent daughter px py pz E mass vx vy vz
    """
    ints = [cursor.next_int() for _ in range(consts.LUND_PARTICLE_INT_FIELDS)]
    reals = [cursor.next_float() for _ in range(consts.LUND_PARTICLE_REAL_FIELDS)]
    return ParticleRecord(
        index=position,
        pid=ints[3],
        status=ints[1],
        px=reals[0],
        py=reals[1],
        pz=reals[2],
        energy=reals[3],
        source_index=ints[0],
        extras=(ints[2], ints[4], ints[5], reals[4], reals[5], reals[6], reals[7]),
    )


def lund_particle_fields(particle: ParticleRecord) -> tuple[tuple[int, ...], tuple[float, ...]]:
    """Rebuild the (integers, reals) of a particle line in file order."""
    i2, parent, daughter, mass, vx, vy, vz = particle.extras
    source_index = particle.source_index if particle.source_index is not None else particle.index
    ints = (source_index, particle.status, i2, particle.pid, parent, daughter)
    reals = (particle.px, particle.py, particle.pz, particle.energy, mass, vx, vy, vz)
    return ints, reals


class LundParser:
    """
    Parses fixed-count (LUND) files.

    Positions 1-5 are validated against the role table; particles beyond
    position 5 are kept in the event but get no role. Any issue marks the
    event as rejected, but it is still yielded so callers can count it.
    """

    def __init__(self, mode_config: ModeConfig, role_assigner: Optional[RoleAssigner] = None):
        """
        Initialize parser.

        Args:
            mode_config: Mode flags (only debug_echo is used here)
            role_assigner: Role lookup; built from mode_config if omitted
        """
        self.mode_config = mode_config
        self.role_assigner = role_assigner or RoleAssigner(mode_config)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._expected_slots = self.role_assigner.lund_slots
        self._slot_positions = RoleAssigner.lund_positions()

    def parse(self, cursor: TokenCursor, accumulator: FileAccumulator) -> Iterator[LundEvent]:
        """
        Yield every complete event of one file.

        Args:
            cursor: Token cursor positioned at the start of the file
            accumulator: Per-file counters to update

        Yields:
            LundEvent for each event whose N particle lines were all read
        """
        tracker = BoundaryTracker()
        tracker.move_to(ParserState.AWAITING_EVENT_HEADER)

        header: Optional[LundHeader] = None
        particles: list[ParticleRecord] = []
        roles: dict[RoleSlot, ParticleRecord] = {}
        issues: list[ValidationIssue] = []
        event_count = 0

        while not tracker.is_done:
            try:
                if tracker.state == ParserState.AWAITING_EVENT_HEADER:
                    if cursor.at_end():
                        tracker.move_to(ParserState.DONE)
                        continue

                    header = read_lund_header(cursor)
                    accumulator.record_event_read()
                    accumulator.record_lund_header(header)
                    event_count += 1
                    tracker.open_event()
                    particles, roles, issues = [], {}, []

                elif tracker.particles_seen < header.particle_count:
                    position = tracker.count_particle()
                    particle = read_lund_particle(cursor, position)
                    particles.append(particle)

                    assignment = self.role_assigner.assign_lund(particle, header)
                    if assignment.valid and assignment.slot is not None:
                        roles[assignment.slot] = particle
                    issues.extend(assignment.issues)

                if (
                    tracker.state == ParserState.IN_EVENT
                    and tracker.particles_seen == header.particle_count
                ):
                    tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
                    event = self._build_event(header, particles, roles, issues, event_count)
                    accumulator.record_issues(event.issues)
                    self._report(event, event_count, cursor.source)
                    yield event

            except EndOfInput:
                if tracker.state == ParserState.IN_EVENT:
                    self.logger.warning(
                        f"{cursor.source}: file truncated in event {event_count} after "
                        f"{tracker.particles_seen} of {header.particle_count} particles"
                    )
                else:
                    self.logger.warning(f"{cursor.source}: file truncated inside an event header")
                accumulator.record_truncation()
                tracker.move_to(ParserState.DONE)

            except FormatViolation as e:
                accumulator.record_format_violation()
                self.logger.warning(f"Format violation, discarding current record: {e}")
                self._resync(cursor, tracker)

    def _build_event(
        self,
        header: LundHeader,
        particles: list[ParticleRecord],
        roles: dict[RoleSlot, ParticleRecord],
        issues: list[ValidationIssue],
        event_count: int
    ) -> LundEvent:
        # Slots already reported as mismatched are not reported again as missing
        reported = {issue.slot for issue in issues}
        missing = [
            issue for issue in RoleAssigner.missing_slots(
                roles, self._expected_slots, self._slot_positions
            )
            if issue.slot not in reported
        ]
        return LundEvent(
            header=header,
            particles=tuple(particles),
            roles=roles,
            issues=tuple(issues) + tuple(missing),
        )

    def _report(self, event: LundEvent, event_count: int, source: str):
        for issue in event.issues:
            self.logger.warning(f"{source}: event {event_count}: {issue.describe()}")

        if self.mode_config.debug_echo:
            self.logger.debug(
                f"event {event_count}: beamE={event.header.beam_energy} "
                f"target={event.header.target_pid} xsec={event.header.xsec} "
                f"accepted={event.accepted}"
            )

    def _resync(self, cursor: TokenCursor, tracker: BoundaryTracker):
        """Skip ahead to the next line shaped like an event header, or give up on the file."""
        found = cursor.seek_line(lambda tokens: len(tokens) == consts.LUND_HEADER_TOKENS)
        if not found:
            self.logger.warning(f"{cursor.source}: no further event header, abandoning file")
            tracker.move_to(ParserState.DONE)
            return

        self.logger.info(f"{cursor.source}:{cursor.line_number}: resynchronized")
        if tracker.state != ParserState.AWAITING_EVENT_HEADER:
            tracker.move_to(ParserState.AWAITING_EVENT_HEADER)
