"""
FileAccumulator service - Per-file counters.

Single responsibility: collect what happened while one input file was parsed
and turn it into an immutable FileStat at the end.
"""

from typing import Iterable, Optional

from domain.events import LundHeader, ValidationIssue
from domain.statistics import FileStat


class FileAccumulator:
    """
    Mutable counters for one input file.

    Parsers record events read, format violations, validation issues and
    truncation; the caller that consumes events records acceptance and
    routing.
    """

    def __init__(self, file_name: str, position: int, helicity: Optional[int] = None):
        self.file_name = file_name
        self.position = position
        self.helicity = helicity

        self.events_read = 0
        self.events_accepted = 0
        self.validation_failures = 0
        self.format_violations = 0
        self.truncated = False

        # Cross-section from the tagged-record trailer
        self.xsec = 0.0
        self.xsec_err = 0.0

        # Last fixed-count header seen
        self.beam_energy: Optional[float] = None
        self.header_xsec: Optional[float] = None

        self.proton_events = 0
        self.neutron_events = 0
        self.unclassified_events = 0

    def record_event_read(self):
        self.events_read += 1

    def record_accepted(self):
        self.events_accepted += 1

    def record_issues(self, issues: Iterable[ValidationIssue]):
        self.validation_failures += sum(1 for _ in issues)

    def record_format_violation(self):
        self.format_violations += 1

    def record_truncation(self):
        self.truncated = True

    def set_cross_section(self, xsec: float, xsec_err: float):
        self.xsec = xsec
        self.xsec_err = abs(xsec_err)

    def record_lund_header(self, header: LundHeader):
        self.beam_energy = header.beam_energy
        self.header_xsec = header.xsec

    def record_proton(self):
        self.proton_events += 1
        self.record_accepted()

    def record_neutron(self):
        self.neutron_events += 1
        self.record_accepted()

    def record_unclassified(self):
        self.unclassified_events += 1

    def finalize(self) -> FileStat:
        """Freeze the counters into a FileStat."""
        return FileStat(
            file_name=self.file_name,
            position=self.position,
            events_read=self.events_read,
            events_accepted=self.events_accepted,
            xsec=self.xsec,
            xsec_err=self.xsec_err,
            helicity=self.helicity,
            proton_events=self.proton_events,
            neutron_events=self.neutron_events,
            unclassified_events=self.unclassified_events,
            validation_failures=self.validation_failures,
            format_violations=self.format_violations,
            truncated=self.truncated,
        )
