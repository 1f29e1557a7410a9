"""
Line variants of the tagged-record (HepMC3 ASCII) format.

Each line starts with a one-character tag that decides its grammar. Every
variant below consumes exactly the tokens its branch needs and nothing more;
the tag itself has already been consumed by the caller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from domain.events import ParticleRecord
from services import consts
from .tokenizer import TokenCursor


class LineTag(Enum):
    """Tags that open a line in the tagged-record format."""

    EVENT = "E"
    VERTEX = "V"
    PARTICLE = "P"
    TRAILER = "T"

    @classmethod
    def from_token(cls, token: str) -> Optional['LineTag']:
        """Return the tag for token, or None for anything else (e.g. the end-of-listing line)."""
        try:
            return cls(token)
        except ValueError:
            return None


@dataclass(frozen=True)
class Preamble:
    """File header lines before the first event."""

    tokens: tuple[str, ...]

    @classmethod
    def read(cls, cursor: TokenCursor, afterburner: bool) -> 'Preamble':
        tokens = cursor.take(consts.TAGGED_PREAMBLE_TOKENS)
        if afterburner:
            # The afterburner inserts its own configuration lines
            tokens += cursor.take(
                consts.AFTERBURNER_PREAMBLE_LINES * consts.AFTERBURNER_PREAMBLE_LINE_TOKENS
            )
        return cls(tuple(tokens))


@dataclass(frozen=True)
class EventHeaderBlock:
    """
    The E line plus its two auxiliary lines.

    E <number> <vertices> <particles> [@ <x> <y> <z> <t>]
    U <momentum unit> <length unit>
    A <n> GenCrossSection <xsec> <xsec_err> <a> <b>

    The per-event cross-section is read but not persisted downstream.
    """

    event_number: int
    numbers: tuple[float, ...]
    crossing: tuple[float, ...]
    units: tuple[str, ...]
    xsec: float
    xsec_err: float

    @classmethod
    def read(cls, cursor: TokenCursor, afterburner: bool) -> 'EventHeaderBlock':
        numbers = (cursor.next_float(), cursor.next_float(), cursor.next_float())
        crossing: tuple[float, ...] = ()
        if afterburner:
            cursor.next_token()  # position marker
            crossing = tuple(cursor.next_float() for _ in range(4))

        units = tuple(cursor.take(3))

        cursor.skip(1)               # attribute tag
        cursor.next_float()          # attribute id
        cursor.skip(1)               # attribute name
        xsec = cursor.next_float()
        xsec_err = cursor.next_float()
        cursor.next_float()
        cursor.next_float()

        return cls(
            event_number=int(numbers[0]),
            numbers=numbers,
            crossing=crossing,
            units=units,
            xsec=xsec,
            xsec_err=xsec_err,
        )


@dataclass(frozen=True)
class VertexLine:
    """V <id> <status> <particles> [@ <x> <y> <z> <t>] -- discarded."""

    vertex_id: int
    fields: tuple[str, ...]

    @classmethod
    def read(cls, cursor: TokenCursor, afterburner: bool) -> 'VertexLine':
        vertex_id = cursor.next_int()
        width = 7 if afterburner else 2
        return cls(vertex_id, tuple(cursor.take(width)))


@dataclass(frozen=True)
class ParticleLine:
    """P <index> <parent> <pid> <px> <py> <pz> <E> <mass> <status>"""

    source_index: int
    parent: int
    pid: int
    px: float
    py: float
    pz: float
    energy: float
    mass: float
    status: int

    @classmethod
    def read(cls, cursor: TokenCursor) -> 'ParticleLine':
        return cls(
            source_index=cursor.next_int(),
            parent=cursor.next_int(),
            pid=cursor.next_int(),
            px=cursor.next_float(),
            py=cursor.next_float(),
            pz=cursor.next_float(),
            energy=cursor.next_float(),
            mass=cursor.next_float(),
            status=cursor.next_int(),
        )

    def to_record(self, position: int) -> ParticleRecord:
        return ParticleRecord(
            index=position,
            pid=self.pid,
            status=self.status,
            px=self.px,
            py=self.py,
            pz=self.pz,
            energy=self.energy,
            source_index=self.source_index,
            extras=(self.parent, self.mass),
        )


@dataclass(frozen=True)
class TrailerBlock:
    """
    Closing block written by EpIC (without afterburner).

    A fixed sequence of label/value lines; the file-level cross-section
    uncertainty comes first, then the cross-section itself.
    """

    xsec: float
    xsec_err: float

    @classmethod
    def read(cls, cursor: TokenCursor) -> 'TrailerBlock':
        cursor.skip(6)
        cursor.skip(3)
        cursor.skip(7)
        cursor.skip(2)
        xsec_err = cursor.next_float()
        cursor.skip(2)
        xsec = cursor.next_float()
        cursor.skip(4)
        return cls(xsec=xsec, xsec_err=xsec_err)
