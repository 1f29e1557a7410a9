"""
EventRouter service - Splits fixed-count events by active nucleon.

Single responsibility: decide whether an event has an active proton or an
active neutron and re-serialize it, in the fixed-count grammar, to the stream
for that species.
"""

import logging
from enum import Enum
from typing import Optional, TextIO

from domain.config import SplitConfig
from domain.events import LundEvent, LundHeader, ParticleRecord, RoleSlot
from services import consts
from services.parsing.lund_parser import lund_particle_fields
from utils.paths import ensure_parent_dir


class RouteTarget(Enum):
    """Where an event ends up in split mode."""

    PROTON_ACTIVE = "proton_active"
    NEUTRON_ACTIVE = "neutron_active"
    UNCLASSIFIED = "unclassified"


def classify(event: LundEvent) -> RouteTarget:
    """Classify an event by the particle in its ActiveNucleon slot."""
    active = event.roles.get(RoleSlot.ACTIVE_NUCLEON)
    if active is None:
        return RouteTarget.UNCLASSIFIED
    if active.pid == consts.PROTON:
        return RouteTarget.PROTON_ACTIVE
    if active.pid == consts.NEUTRON:
        return RouteTarget.NEUTRON_ACTIVE
    return RouteTarget.UNCLASSIFIED


def format_header(header: LundHeader) -> str:
    """Header line, reals at 6 decimal places."""
    n, i1, i2, i3, i4, i5, target, i7 = header.int_fields
    beam_energy, xsec = header.real_fields
    return (
        f"{n} {i1} {i2} {i3} {i4} {i5} {beam_energy:.6f} "
        f"{target} {i7} {xsec:.6f}"
    )


def format_particle(particle: ParticleRecord) -> str:
    """Particle line, reals at 8 decimal places."""
    ints, reals = lund_particle_fields(particle)
    d = [f"{value:.8f}" for value in reals]
    return (
        f"{ints[0]} {ints[1]} {ints[2]} {ints[3]} {ints[4]}  {ints[5]}   "
        f"{d[0]}    {d[1]}    {d[2]}    {d[3]}    {d[4]}   {d[5]}   {d[6]}   {d[7]}"
    )


def format_event(event: LundEvent) -> str:
    lines = [format_header(event.header)]
    lines.extend(format_particle(p) for p in event.particles)
    return "\n".join(lines) + "\n"


class EventRouter:
    """
    Routes the events of one input file to its two split streams.

    Both streams are created (truncated) when the router is entered, so an
    input with no events of one species still leaves an empty file behind.
    """

    def __init__(self, split_config: SplitConfig, position: int):
        """
        Initialize router.

        Args:
            split_config: Output directory and naming
            position: Ordinal position of the input file in the list
        """
        self.split_config = split_config
        self.position = position
        self.proton_path = split_config.output_path(split_config.proton_tag, position)
        self.neutron_path = split_config.output_path(split_config.neutron_tag, position)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._proton_stream: Optional[TextIO] = None
        self._neutron_stream: Optional[TextIO] = None

    @property
    def output_paths(self) -> tuple[str, str]:
        return (self.proton_path, self.neutron_path)

    def __enter__(self) -> 'EventRouter':
        self._proton_stream = open(ensure_parent_dir(self.proton_path), "w", encoding="utf-8")
        try:
            self._neutron_stream = open(self.neutron_path, "w", encoding="utf-8")
        except OSError:
            self._proton_stream.close()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for stream in (self._proton_stream, self._neutron_stream):
            if stream is not None:
                stream.close()
        self._proton_stream = None
        self._neutron_stream = None

    def route(self, event: LundEvent, event_number: Optional[int] = None) -> RouteTarget:
        """
        Write one event to the stream for its active nucleon.

        Unclassified events are logged and written nowhere.

        Returns:
            The RouteTarget the event was classified as
        """
        target = classify(event)

        if target == RouteTarget.PROTON_ACTIVE:
            self._proton_stream.write(format_event(event))
        elif target == RouteTarget.NEUTRON_ACTIVE:
            self._neutron_stream.write(format_event(event))
        else:
            label = f"event {event_number}" if event_number is not None else "event"
            self.logger.warning(
                f"{label}: active nucleon is neither proton nor neutron "
                f"(target {event.header.target_pid}), dropping it"
            )

        return target
