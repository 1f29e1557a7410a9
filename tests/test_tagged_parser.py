"""
Tests for TaggedRecordParser.

Tests event boundaries, role assignment and recovery on HepMC3 ASCII input.
"""

import io
import logging

import pytest

from domain.config import GeneratorFamily, ModeConfig
from domain.events import IssueKind, RoleSlot
from services.parsing.file_accumulator import FileAccumulator
from services.parsing.tagged_parser import TaggedRecordParser
from services.parsing.tokenizer import TokenCursor
from samples import (
    EPIC_PARTICLES,
    TOYMC_PARTICLES,
    hepmc_event,
    hepmc_text,
)

PREAMBLE = ["HepMC::Version 3.02.02", "HepMC::Asciiv3-START_EVENT_LISTING"]


def parse(text: str, mode_config: ModeConfig = None):
    mode_config = mode_config or ModeConfig(generator=GeneratorFamily.EPIC)
    parser = TaggedRecordParser(mode_config)
    accumulator = FileAccumulator("test.hepmc", position=0)
    cursor = TokenCursor(io.StringIO(text), source="test.hepmc")
    events = list(parser.parse(cursor, accumulator))
    return events, accumulator


class TestWellFormedFiles:
    """Tests for files that follow the grammar."""

    def test_epic_file_with_trailer(self):
        """Test that every event is emitted and the trailer cross-section captured."""
        text = hepmc_text([EPIC_PARTICLES, EPIC_PARTICLES], trailer=(2.5, 0.2))
        events, acc = parse(text)

        assert len(events) == 2
        assert acc.events_read == 2
        assert acc.xsec == pytest.approx(2.5)
        assert acc.xsec_err == pytest.approx(0.2)
        assert acc.validation_failures == 0
        assert not acc.truncated

    def test_event_numbers_and_roles(self):
        """Test that particles land in the EpIC slots."""
        events, _ = parse(hepmc_text([EPIC_PARTICLES], trailer=(1.0, 0.1)))
        event = events[0]

        assert event.event_number == 0
        assert len(event.particles) == 8
        assert not event.has_issues
        assert event.roles[RoleSlot.BEAM_LEPTON].four_vector == (1.0, 0.5, 10.0, 11.0)
        assert event.roles[RoleSlot.SCATTERED_LEPTON].index == 2
        assert event.roles[RoleSlot.REAL_PHOTON].index == 3
        assert event.roles[RoleSlot.DECAY_LEPTON_PLUS].pid == -11

    def test_toymc_file_with_sentinel(self):
        """Test a ToyMC file that ends with the end-of-listing line."""
        mode = ModeConfig(generator=GeneratorFamily.TOYMC)
        events, acc = parse(hepmc_text([TOYMC_PARTICLES] * 3), mode)

        assert len(events) == 3
        assert acc.events_read == 3
        assert acc.xsec == 0.0
        assert events[0].roles[RoleSlot.REAL_PHOTON].index == 2

    def test_afterburner_file(self):
        """Test that the afterburner preamble and crossing fields are consumed."""
        mode = ModeConfig(generator=GeneratorFamily.EPIC, afterburner=True)
        events, acc = parse(hepmc_text([EPIC_PARTICLES] * 2, afterburner=True), mode)

        assert len(events) == 2
        assert acc.format_violations == 0
        assert events[1].roles[RoleSlot.RECOIL_NUCLEON].pid == 2212

    def test_file_without_sentinel_or_trailer(self):
        """Test that ending exactly at an event boundary is normal termination."""
        events, acc = parse(hepmc_text([EPIC_PARTICLES], sentinel=False))
        assert len(events) == 1
        assert not acc.truncated


class TestValidation:
    """Tests for identity mismatches."""

    def test_toymc_mismatch_still_emits_event(self):
        """Test that a wrong pid at position 2 is reported but the event is kept."""
        particles = list(TOYMC_PARTICLES)
        particles[1] = (11, 21)
        mode = ModeConfig(generator=GeneratorFamily.TOYMC)

        events, acc = parse(hepmc_text([particles]), mode)

        assert len(events) == 1
        assert acc.validation_failures == 1
        issue = events[0].issues[0]
        assert issue.kind == IssueKind.IDENTITY_MISMATCH
        assert issue.slot == RoleSlot.REAL_PHOTON
        assert issue.observed_pid == 11
        assert events[0].roles[RoleSlot.REAL_PHOTON].pid == 11

    def test_mismatch_is_logged(self, caplog):
        """Test that mismatches are reported as warnings."""
        particles = list(EPIC_PARTICLES)
        particles[0] = (13, 4)
        with caplog.at_level(logging.WARNING):
            parse(hepmc_text([particles], trailer=(1.0, 0.1)))
        assert any("BEAM_LEPTON" in r.message for r in caplog.records)

    def test_wrong_family_flags_every_swapped_position(self):
        """Test that EpIC files parsed as ToyMC produce mismatches."""
        mode = ModeConfig(generator=GeneratorFamily.TOYMC)
        events, acc = parse(hepmc_text([EPIC_PARTICLES]), mode)
        assert len(events) == 1
        assert acc.validation_failures > 0


class TestRecovery:
    """Tests for truncation and format violations."""

    def test_truncated_event_is_discarded(self):
        """Test that a file ending mid-event keeps earlier events."""
        lines = PREAMBLE + hepmc_event(0, EPIC_PARTICLES) + hepmc_event(1, EPIC_PARTICLES)[:7]
        events, acc = parse("\n".join(lines) + "\n")

        assert len(events) == 1
        assert acc.events_read == 2
        assert acc.truncated

    def test_event_cut_short_by_next_header(self):
        """Test that an incomplete event is dropped and the next one still parsed."""
        lines = (
            PREAMBLE
            + hepmc_event(0, EPIC_PARTICLES)[:9]
            + hepmc_event(1, EPIC_PARTICLES)
            + ["HepMC::Asciiv3-END_EVENT_LISTING"]
        )
        events, acc = parse("\n".join(lines) + "\n")

        assert [e.event_number for e in events] == [1]
        assert acc.events_read == 2
        assert acc.format_violations == 1

    def test_non_numeric_field_resyncs_at_next_event(self):
        """Test that a bad token discards the event and parsing resumes."""
        first = hepmc_event(0, EPIC_PARTICLES)
        first[7] = first[7].replace("4.0", "abc", 1)
        lines = PREAMBLE + first + hepmc_event(1, EPIC_PARTICLES) + ["HepMC::Asciiv3-END_EVENT_LISTING"]

        events, acc = parse("\n".join(lines) + "\n")

        assert [e.event_number for e in events] == [1]
        assert acc.format_violations == 1
        assert acc.events_read == 2

    def test_violation_with_no_further_boundary_abandons_file(self):
        """Test that the file is abandoned cleanly when resync finds nothing."""
        first = hepmc_event(0, EPIC_PARTICLES)
        first[3] = "P 1 0 eleven 0 0 0 0 0 4"
        events, acc = parse("\n".join(PREAMBLE + first) + "\n")

        assert events == []
        assert acc.format_violations == 1

    def test_truncated_trailer(self):
        """Test that a cut-off trailer is reported and leaves the cross-section at zero."""
        text = hepmc_text([EPIC_PARTICLES], sentinel=False) + "T EpIC run summary\n"
        events, acc = parse(text)

        assert len(events) == 1
        assert acc.truncated
        assert acc.xsec == 0.0

    def test_undecodable_line_resyncs_at_next_event(self):
        """Test that bad bytes inside an event discard it and parsing resumes."""
        first = hepmc_event(0, EPIC_PARTICLES)
        head = "\n".join(PREAMBLE + first[:5]) + "\n"
        tail = "\n".join(
            first[6:] + hepmc_event(1, EPIC_PARTICLES) + ["HepMC::Asciiv3-END_EVENT_LISTING"]
        ) + "\n"
        data = head.encode("utf-8") + b"P 3 0 \xff\xfe 0 0 0 0 0 3\n" + tail.encode("utf-8")

        parser = TaggedRecordParser(ModeConfig(generator=GeneratorFamily.EPIC))
        accumulator = FileAccumulator("bad.hepmc", position=0)
        events = list(parser.parse(TokenCursor(io.BytesIO(data), source="bad.hepmc"), accumulator))

        assert [e.event_number for e in events] == [1]
        assert accumulator.format_violations == 1
        assert accumulator.events_read == 2

    def test_undecodable_preamble(self):
        """Test that bad bytes in the preamble do not hide the events after it."""
        body = hepmc_text([EPIC_PARTICLES]).split("\n", 2)[2]
        data = b"\xff\xfe\n" + body.encode("utf-8")

        parser = TaggedRecordParser(ModeConfig(generator=GeneratorFamily.EPIC))
        accumulator = FileAccumulator("bad.hepmc", position=0)
        events = list(parser.parse(TokenCursor(io.BytesIO(data), source="bad.hepmc"), accumulator))

        assert len(events) == 1
        assert accumulator.format_violations == 1

    def test_empty_file(self):
        """Test that an empty file yields nothing."""
        events, acc = parse("")
        assert events == []
        assert acc.events_read == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
