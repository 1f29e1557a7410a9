"""
RoleAssigner - Maps particle positions to physical roles.

Single responsibility: look up the role slot for a particle's position under the
active generator mode and check its identity codes. Mismatches are reported as
ValidationIssue values and never abort parsing.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from domain.config import GeneratorFamily, ModeConfig
from domain.events import (
    IssueKind,
    LundHeader,
    ParticleRecord,
    RoleSlot,
    ValidationIssue,
)
from services import consts


@dataclass(frozen=True)
class Expectation:
    """Allowed particle codes (and, optionally, the status code) for a slot."""

    pids: frozenset[int]
    status: Optional[int] = None

    def matches(self, pid: int, status: int) -> bool:
        if pid not in self.pids:
            return False
        return self.status is None or status == self.status

    def describe(self) -> str:
        pids = "/".join(str(p) for p in sorted(self.pids))
        if self.status is None:
            return f"pid {pids}"
        return f"pid {pids}, status {self.status}"


def _expect(*pids: int, status: Optional[int] = None) -> Expectation:
    return Expectation(frozenset(pids), status)


# ---------------------------------------------------------------------------
# Tagged-record tables
# ---------------------------------------------------------------------------

_TOYMC_ORDER = (
    RoleSlot.BEAM_LEPTON,
    RoleSlot.REAL_PHOTON,
    RoleSlot.SCATTERED_LEPTON,
    RoleSlot.BEAM_NUCLEON,
    RoleSlot.RECOIL_NUCLEON,
    RoleSlot.VIRTUAL_PHOTON,
    RoleSlot.DECAY_LEPTON_MINUS,
    RoleSlot.DECAY_LEPTON_PLUS,
)

# EpIC writes positions 2<->3 and 5<->6 the other way round
_EPIC_SWAPS = ((2, 3), (5, 6))


def _swap_positions(order: tuple, swaps: Iterable[tuple[int, int]]) -> tuple:
    slots = list(order)
    for a, b in swaps:
        slots[a - 1], slots[b - 1] = slots[b - 1], slots[a - 1]
    return tuple(slots)


_ORDER_BY_FAMILY = {
    GeneratorFamily.TOYMC: _TOYMC_ORDER,
    GeneratorFamily.EPIC: _swap_positions(_TOYMC_ORDER, _EPIC_SWAPS),
}

# (family, position) -> slot
TAGGED_SLOTS: dict[tuple[GeneratorFamily, int], RoleSlot] = {
    (family, position): slot
    for family, order in _ORDER_BY_FAMILY.items()
    for position, slot in enumerate(order, start=1)
}

_TOYMC_EXPECTATIONS = {
    RoleSlot.BEAM_LEPTON: _expect(consts.ELECTRON, status=consts.STATUS_TOYMC_INCOMING),
    RoleSlot.REAL_PHOTON: _expect(consts.PHOTON, status=consts.STATUS_TOYMC_INCOMING),
    RoleSlot.SCATTERED_LEPTON: _expect(consts.ELECTRON, status=consts.STATUS_FINAL),
    RoleSlot.BEAM_NUCLEON: _expect(consts.PROTON, status=consts.STATUS_TOYMC_INCOMING),
    RoleSlot.RECOIL_NUCLEON: _expect(consts.PROTON, status=consts.STATUS_FINAL),
    RoleSlot.VIRTUAL_PHOTON: _expect(consts.PHOTON, status=consts.STATUS_TOYMC_INCOMING),
    RoleSlot.DECAY_LEPTON_MINUS: _expect(consts.ELECTRON, status=consts.STATUS_FINAL),
    RoleSlot.DECAY_LEPTON_PLUS: _expect(consts.POSITRON, status=consts.STATUS_FINAL),
}

_EPIC_EXPECTATIONS = {
    RoleSlot.BEAM_LEPTON: _expect(consts.ELECTRON, status=consts.STATUS_EPIC_BEAM),
    RoleSlot.SCATTERED_LEPTON: _expect(consts.ELECTRON, status=consts.STATUS_FINAL),
    RoleSlot.REAL_PHOTON: _expect(consts.PHOTON, status=consts.STATUS_EPIC_INTERMEDIATE),
    RoleSlot.BEAM_NUCLEON: _expect(consts.PROTON, status=consts.STATUS_EPIC_BEAM),
    RoleSlot.VIRTUAL_PHOTON: _expect(consts.PHOTON, status=consts.STATUS_EPIC_INTERMEDIATE),
    RoleSlot.RECOIL_NUCLEON: _expect(consts.PROTON, status=consts.STATUS_FINAL),
    RoleSlot.DECAY_LEPTON_MINUS: _expect(consts.ELECTRON, status=consts.STATUS_FINAL),
    RoleSlot.DECAY_LEPTON_PLUS: _expect(consts.POSITRON, status=consts.STATUS_FINAL),
}

# (family, afterburner) -> slot -> expectation
# The afterburner only adds crossing-angle fields; identity codes are unchanged.
TAGGED_EXPECTATIONS: dict[tuple[GeneratorFamily, bool], Mapping[RoleSlot, Expectation]] = {
    (GeneratorFamily.TOYMC, False): _TOYMC_EXPECTATIONS,
    (GeneratorFamily.TOYMC, True): _TOYMC_EXPECTATIONS,
    (GeneratorFamily.EPIC, False): _EPIC_EXPECTATIONS,
    (GeneratorFamily.EPIC, True): _EPIC_EXPECTATIONS,
}

# ---------------------------------------------------------------------------
# Fixed-count (LUND) tables
# ---------------------------------------------------------------------------

LUND_SLOTS: dict[int, RoleSlot] = {
    1: RoleSlot.BEAM_LEPTON,
    2: RoleSlot.SPECTATOR_NUCLEON,
    3: RoleSlot.ACTIVE_NUCLEON,
    4: RoleSlot.DECAY_PHOTON_1,
    5: RoleSlot.DECAY_PHOTON_2,
}

LUND_EXPECTATIONS: dict[RoleSlot, Expectation] = {
    RoleSlot.BEAM_LEPTON: _expect(consts.ELECTRON),
    RoleSlot.SPECTATOR_NUCLEON: _expect(*consts.NUCLEONS),
    RoleSlot.ACTIVE_NUCLEON: _expect(*consts.NUCLEONS),
    RoleSlot.DECAY_PHOTON_1: _expect(consts.PHOTON),
    RoleSlot.DECAY_PHOTON_2: _expect(consts.PHOTON),
}


@dataclass(frozen=True)
class RoleAssignment:
    """Result of assigning one particle: its slot (if any) and any issues."""

    slot: Optional[RoleSlot]
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.issues


class RoleAssigner:
    """
    Assigns role slots from lookup tables keyed by generator mode and position.

    Stateless apart from the mode it was built for.
    """

    def __init__(self, mode_config: ModeConfig):
        self.mode_config = mode_config
        self._tagged_expectations = TAGGED_EXPECTATIONS[
            (mode_config.generator, mode_config.afterburner)
        ]

    @property
    def tagged_slots(self) -> tuple[RoleSlot, ...]:
        """Slots every tagged-record event must fill, in position order."""
        return _ORDER_BY_FAMILY[self.mode_config.generator]

    @property
    def lund_slots(self) -> tuple[RoleSlot, ...]:
        return tuple(LUND_SLOTS[p] for p in sorted(LUND_SLOTS))

    def assign_tagged(self, particle: ParticleRecord) -> RoleAssignment:
        """Assign a tagged-record particle by its position (1..8)."""
        slot = TAGGED_SLOTS.get((self.mode_config.generator, particle.index))
        if slot is None:
            return RoleAssignment(None)

        expectation = self._tagged_expectations[slot]
        if expectation.matches(particle.pid, particle.status):
            return RoleAssignment(slot)

        issue = ValidationIssue(
            kind=IssueKind.IDENTITY_MISMATCH,
            slot=slot,
            position=particle.index,
            observed_pid=particle.pid,
            observed_status=particle.status,
            expected=expectation.describe(),
        )
        return RoleAssignment(slot, (issue,))

    def assign_lund(self, particle: ParticleRecord, header: LundHeader) -> RoleAssignment:
        """
        Assign a fixed-count particle by its position.

        Positions beyond the table are stored by the caller but get no slot.
        The active nucleon must first agree with the target declared in the
        header; that check is reported separately from the identity check.
        """
        slot = LUND_SLOTS.get(particle.index)
        if slot is None:
            return RoleAssignment(None)

        if slot == RoleSlot.ACTIVE_NUCLEON and particle.pid != header.target_pid:
            issue = ValidationIssue(
                kind=IssueKind.TARGET_MISMATCH,
                slot=slot,
                position=particle.index,
                observed_pid=particle.pid,
                observed_status=particle.status,
                expected=str(header.target_pid),
            )
            return RoleAssignment(slot, (issue,))

        expectation = LUND_EXPECTATIONS[slot]
        if expectation.matches(particle.pid, particle.status):
            return RoleAssignment(slot)

        issue = ValidationIssue(
            kind=IssueKind.IDENTITY_MISMATCH,
            slot=slot,
            position=particle.index,
            observed_pid=particle.pid,
            observed_status=particle.status,
            expected=expectation.describe(),
        )
        return RoleAssignment(slot, (issue,))

    @staticmethod
    def missing_slots(
        roles: Mapping[RoleSlot, ParticleRecord],
        expected: Iterable[RoleSlot],
        positions: Mapping[RoleSlot, int]
    ) -> list[ValidationIssue]:
        """Issues for every expected slot left empty at the end of an event."""
        return [
            ValidationIssue(
                kind=IssueKind.MISSING_SLOT,
                slot=slot,
                position=positions.get(slot, 0),
            )
            for slot in expected
            if slot not in roles
        ]

    def tagged_positions(self) -> dict[RoleSlot, int]:
        return {slot: i for i, slot in enumerate(self.tagged_slots, start=1)}

    @staticmethod
    def lund_positions() -> dict[RoleSlot, int]:
        return {slot: position for position, slot in LUND_SLOTS.items()}
