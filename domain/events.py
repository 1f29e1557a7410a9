"""
Event-related domain models.

Immutable data structures representing particles, parsed events and chunks of
accepted events ready to be written out.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Union

import awkward as ak
import numpy as np
import vector


Number = Union[int, float]

# Four-vector components, in output order
FOUR_VECTOR_FIELDS = ("px", "py", "pz", "E")


class RoleSlot(Enum):
    """Physical role of a particle within one event."""

    BEAM_LEPTON = "beam_lepton"
    SCATTERED_LEPTON = "scattered_lepton"
    REAL_PHOTON = "real_photon"
    VIRTUAL_PHOTON = "virtual_photon"
    BEAM_NUCLEON = "beam_nucleon"
    RECOIL_NUCLEON = "recoil_nucleon"
    ACTIVE_NUCLEON = "active_nucleon"
    SPECTATOR_NUCLEON = "spectator_nucleon"
    DECAY_LEPTON_MINUS = "decay_lepton_minus"
    DECAY_LEPTON_PLUS = "decay_lepton_plus"
    DECAY_PHOTON_1 = "decay_photon_1"
    DECAY_PHOTON_2 = "decay_photon_2"

    def __str__(self) -> str:
        return self.name


class IssueKind(Enum):
    """Kinds of non-fatal validation failures."""

    IDENTITY_MISMATCH = "identity_mismatch"
    TARGET_MISMATCH = "target_mismatch"
    MISSING_SLOT = "missing_slot"


@dataclass(frozen=True)
class ParticleRecord:
    """
    One particle line.

    index is the 1-based position within the event; source_index is whatever
    the file declared. extras holds the format-specific fields that are carried
    through unmodified.
    """

    index: int
    pid: int
    status: int
    px: float
    py: float
    pz: float
    energy: float
    source_index: Optional[int] = None
    extras: tuple[Number, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.index <= 0:
            raise ValueError(f"index must be positive, got {self.index}")

    @property
    def four_vector(self) -> tuple[float, float, float, float]:
        return (self.px, self.py, self.pz, self.energy)


@dataclass(frozen=True)
class ValidationIssue:
    """A particle that did not match its slot's expectation."""

    kind: IssueKind
    slot: RoleSlot
    position: int
    observed_pid: Optional[int] = None
    observed_status: Optional[int] = None
    expected: Optional[str] = None

    def describe(self) -> str:
        if self.kind == IssueKind.MISSING_SLOT:
            return f"{self.slot} was never filled (expected at position {self.position})"
        if self.kind == IssueKind.TARGET_MISMATCH:
            return (
                f"{self.slot} at position {self.position} has pid {self.observed_pid}, "
                f"but the header declares target {self.expected}"
            )
        return (
            f"{self.slot} at position {self.position}: pid {self.observed_pid}, "
            f"status {self.observed_status} (expected {self.expected})"
        )


def _frozen_roles(roles: Mapping[RoleSlot, ParticleRecord]) -> Mapping[RoleSlot, ParticleRecord]:
    return MappingProxyType(dict(roles))


@dataclass(frozen=True)
class TaggedEvent:
    """A complete event from a tagged-record (HepMC) file."""

    event_number: int
    particles: tuple[ParticleRecord, ...]
    roles: Mapping[RoleSlot, ParticleRecord]
    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "roles", _frozen_roles(self.roles))

    @property
    def has_issues(self) -> bool:
        return len(self.issues) > 0


@dataclass(frozen=True)
class LundHeader:
    """
    Event header of a fixed-count (LUND) file.

    Layout: N i1 i2 i3 i4 i5 beamE target i7 xsec
    int_fields holds the eight integers in file order, real_fields the two reals.
    """

    int_fields: tuple[int, ...]
    real_fields: tuple[float, ...]

    def __post_init__(self):
        if len(self.int_fields) != 8:
            raise ValueError(f"LUND header needs 8 integer fields, got {len(self.int_fields)}")
        if len(self.real_fields) != 2:
            raise ValueError(f"LUND header needs 2 real fields, got {len(self.real_fields)}")
        if self.particle_count < 0:
            raise ValueError(f"particle count must be non-negative, got {self.particle_count}")

    @property
    def particle_count(self) -> int:
        return self.int_fields[0]

    @property
    def target_pid(self) -> int:
        return self.int_fields[6]

    @property
    def beam_energy(self) -> float:
        return self.real_fields[0]

    @property
    def xsec(self) -> float:
        return self.real_fields[1]


@dataclass(frozen=True)
class LundEvent:
    """A complete event from a fixed-count (LUND) file."""

    header: LundHeader
    particles: tuple[ParticleRecord, ...]
    roles: Mapping[RoleSlot, ParticleRecord]
    issues: tuple[ValidationIssue, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "roles", _frozen_roles(self.roles))
        if len(self.particles) != self.header.particle_count:
            raise ValueError(
                f"event declares {self.header.particle_count} particles "
                f"but holds {len(self.particles)}"
            )

    @property
    def accepted(self) -> bool:
        """An event is accepted only when no validation issue was raised."""
        return len(self.issues) == 0

    @property
    def active_pid(self) -> Optional[int]:
        active = self.roles.get(RoleSlot.ACTIVE_NUCLEON)
        return active.pid if active is not None else None


@dataclass(frozen=True)
class EventChunk:
    """
    A chunk of accepted events ready to be written.

    events is an awkward record array: four-vector fields are vector
    Momentum4D records, scalar fields are plain numbers.
    """

    events: ak.Array
    chunk_index: int
    event_count: int
    vector_fields: tuple[str, ...]
    scalar_fields: tuple[str, ...]

    def __post_init__(self):
        """Validate the event chunk."""
        if self.chunk_index < 0:
            raise ValueError(f"chunk_index must be non-negative, got {self.chunk_index}")
        if self.event_count < 0:
            raise ValueError(f"event_count must be non-negative, got {self.event_count}")
        if len(self.events) != self.event_count:
            raise ValueError(
                f"event_count ({self.event_count}) does not match array length ({len(self.events)})"
            )

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[dict],
        chunk_index: int,
        vector_fields: Sequence[str],
        scalar_fields: Mapping[str, type]
    ) -> 'EventChunk':
        """
        Create an EventChunk from per-event rows.

        Args:
            rows: One dict per event, mapping vector fields to (px, py, pz, E)
                  tuples and scalar fields to numbers
            chunk_index: Index of this chunk in the sequence
            vector_fields: Names of the four-vector fields
            scalar_fields: Scalar field names mapped to their numpy dtype

        Returns:
            EventChunk with the zipped events
        """
        if not rows:
            raise ValueError("Cannot create EventChunk from empty row list")

        columns = {}
        for name in vector_fields:
            values = np.asarray([row[name] for row in rows], dtype=np.float64)
            columns[name] = vector.zip({
                component: values[:, i]
                for i, component in enumerate(FOUR_VECTOR_FIELDS)
            })
        for name, dtype in scalar_fields.items():
            columns[name] = np.asarray([row[name] for row in rows], dtype=dtype)

        return cls(
            events=ak.zip(columns, depth_limit=1),
            chunk_index=chunk_index,
            event_count=len(rows),
            vector_fields=tuple(vector_fields),
            scalar_fields=tuple(scalar_fields),
        )
