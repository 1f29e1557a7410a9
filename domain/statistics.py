"""
Statistics-related domain models.

Immutable per-file statistics and the run-level totals they fold into.
"""

import math
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class FileStat:
    """Statistics for a single input file."""

    file_name: str
    position: int
    events_read: int = 0
    events_accepted: int = 0
    xsec: float = 0.0
    xsec_err: float = 0.0
    helicity: Optional[int] = None

    # Split mode
    proton_events: int = 0
    neutron_events: int = 0
    unclassified_events: int = 0

    # Diagnostics
    validation_failures: int = 0
    format_violations: int = 0
    truncated: bool = False
    opened: bool = True
    error_message: Optional[str] = None

    def __post_init__(self):
        """Validate file statistics."""
        if self.position < 0:
            raise ValueError(f"position must be non-negative, got {self.position}")
        if self.events_read < 0:
            raise ValueError(f"events_read must be non-negative, got {self.events_read}")
        if self.events_accepted < 0:
            raise ValueError(f"events_accepted must be non-negative, got {self.events_accepted}")
        if self.events_accepted > self.events_read:
            raise ValueError(
                f"events_accepted ({self.events_accepted}) cannot exceed "
                f"events_read ({self.events_read})"
            )
        if self.xsec_err < 0:
            raise ValueError(f"xsec_err must be non-negative, got {self.xsec_err}")
        if not self.opened and not self.error_message:
            raise ValueError("error_message must be provided when opened=False")

    @classmethod
    def unopened(cls, file_name: str, position: int, reason: str,
                 helicity: Optional[int] = None) -> 'FileStat':
        """FileStat for an input that could not be opened."""
        return cls(
            file_name=file_name,
            position=position,
            helicity=helicity,
            opened=False,
            error_message=reason,
        )

    @property
    def acceptance_rate(self) -> float:
        """Accepted events as percentage of events read."""
        if self.events_read == 0:
            return 0.0
        return (self.events_accepted / self.events_read) * 100

    def to_dict(self) -> dict:
        """Convert to dictionary for logging / JSON serialization."""
        return {
            "file_name": self.file_name,
            "position": self.position,
            "events_read": self.events_read,
            "events_accepted": self.events_accepted,
            "xsec": self.xsec,
            "xsec_err": self.xsec_err,
            "helicity": self.helicity,
            "proton_events": self.proton_events,
            "neutron_events": self.neutron_events,
            "unclassified_events": self.unclassified_events,
            "validation_failures": self.validation_failures,
            "format_violations": self.format_violations,
            "truncated": self.truncated,
            "opened": self.opened,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class RunTotals:
    """
    Run-level aggregate over all processed files.

    Cross-section uncertainties are combined in quadrature, so the result does
    not depend on the order in which files are folded in.
    """

    events: int = 0
    events_read: int = 0
    xsec: float = 0.0
    xsec_err: float = 0.0
    files_processed: int = 0
    files_failed: int = 0
    proton_events: int = 0
    neutron_events: int = 0

    def fold(self, stat: FileStat) -> 'RunTotals':
        """Return new totals with one file's statistics added."""
        if not stat.opened:
            return replace(self, files_failed=self.files_failed + 1)

        return replace(
            self,
            events=self.events + stat.events_accepted,
            events_read=self.events_read + stat.events_read,
            xsec=self.xsec + stat.xsec,
            xsec_err=math.sqrt(self.xsec_err ** 2 + stat.xsec_err ** 2),
            files_processed=self.files_processed + 1,
            proton_events=self.proton_events + stat.proton_events,
            neutron_events=self.neutron_events + stat.neutron_events,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging / JSON serialization."""
        return {
            "events": self.events,
            "events_read": self.events_read,
            "xsec": self.xsec,
            "xsec_err": self.xsec_err,
            "files_processed": self.files_processed,
            "files_failed": self.files_failed,
            "proton_events": self.proton_events,
            "neutron_events": self.neutron_events,
        }
