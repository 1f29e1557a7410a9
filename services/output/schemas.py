"""
Output schemas for the ROOT datasets.

Each conversion mode writes one four-vector per role plus a few per-event
scalars. Four-vectors are flattened to <name>_px, <name>_py, <name>_pz, <name>_E
branches when written.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np

from domain.config import RunMode
from domain.events import FOUR_VECTOR_FIELDS, LundEvent, RoleSlot, TaggedEvent

# Event row value used when the helicity of a file is unknown
UNKNOWN_HELICITY = -1


@dataclass(frozen=True)
class DatasetSchema:
    """Branch layout of one event tree."""

    vector_branches: Mapping[RoleSlot, str]
    scalar_branches: Mapping[str, type]

    @property
    def vector_fields(self) -> tuple[str, ...]:
        return tuple(self.vector_branches.values())

    def branch_types(self) -> dict[str, type]:
        """Flat branch name -> numpy dtype, as passed to uproot's mktree."""
        types = {
            f"{name}_{component}": np.float64
            for name in self.vector_fields
            for component in FOUR_VECTOR_FIELDS
        }
        types.update(self.scalar_branches)
        return types

    def row_from_roles(self, roles: Mapping[RoleSlot, object], scalars: dict) -> dict:
        """Build one event row from a roles mapping and the event's scalars."""
        row = {
            name: roles[slot].four_vector
            for slot, name in self.vector_branches.items()
        }
        row.update(scalars)
        return row


TAGGED_SCHEMA = DatasetSchema(
    vector_branches={
        RoleSlot.BEAM_LEPTON: "ebeam",
        RoleSlot.BEAM_NUCLEON: "pbeam",
        RoleSlot.SCATTERED_LEPTON: "escattered",
        RoleSlot.REAL_PHOTON: "q",
        RoleSlot.RECOIL_NUCLEON: "recoil",
        RoleSlot.VIRTUAL_PHOTON: "qprime",
        RoleSlot.DECAY_LEPTON_MINUS: "lep_minus",
        RoleSlot.DECAY_LEPTON_PLUS: "lep_plus",
    },
    scalar_branches={"helicity": np.int32},
)

LUND_SCHEMA = DatasetSchema(
    vector_branches={
        RoleSlot.BEAM_LEPTON: "electron",
        RoleSlot.SPECTATOR_NUCLEON: "spectator",
        RoleSlot.ACTIVE_NUCLEON: "recoil",
        RoleSlot.DECAY_PHOTON_1: "photon1",
        RoleSlot.DECAY_PHOTON_2: "photon2",
    },
    scalar_branches={"beamE": np.float64, "xsec": np.float64},
)


def schema_for(mode: RunMode) -> DatasetSchema:
    """Return the event-tree schema for a dataset-writing mode."""
    if mode == RunMode.HEPMC:
        return TAGGED_SCHEMA
    if mode == RunMode.LUND:
        return LUND_SCHEMA
    raise ValueError(f"Mode {mode.value} does not write a dataset")


def tagged_row(event: TaggedEvent, helicity: Optional[int]) -> dict:
    """Event row for a tagged-record event."""
    return TAGGED_SCHEMA.row_from_roles(
        event.roles,
        {"helicity": UNKNOWN_HELICITY if helicity is None else helicity},
    )


def lund_row(event: LundEvent) -> dict:
    """Event row for an accepted fixed-count event; header values are republished."""
    return LUND_SCHEMA.row_from_roles(
        event.roles,
        {"beamE": event.header.beam_energy, "xsec": event.header.xsec},
    )
