"""
Configuration domain models.

Validated configuration objects for the conversion pipeline. Everything here is
fixed before the first input file is opened.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class GeneratorFamily(Enum):
    """Event generator that produced the tagged-record files."""

    TOYMC = "toymc"
    EPIC = "epic"

    @classmethod
    def parse(cls, value: str) -> 'GeneratorFamily':
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown generator family '{value}', expected one of "
                f"{[g.value for g in cls]}"
            ) from None


class RunMode(Enum):
    """Which program the pipeline runs."""

    HEPMC = "hepmc"   # tagged-record files -> ROOT
    LUND = "lund"     # fixed-count files -> ROOT
    SPLIT = "split"   # fixed-count files -> proton / neutron LUND streams

    @classmethod
    def parse(cls, value: str) -> 'RunMode':
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown run mode '{value}', expected one of {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True)
class ModeConfig:
    """Generator-mode flags shared by every parser."""

    generator: GeneratorFamily = GeneratorFamily.EPIC
    afterburner: bool = False
    debug_echo: bool = False

    # Optional cap on the total number of accepted events
    event_limit: bool = False
    max_events: int = 200_000

    def __post_init__(self):
        """Validate mode configuration."""
        if not isinstance(self.generator, GeneratorFamily):
            raise ValueError(f"generator must be a GeneratorFamily, got {self.generator!r}")
        if self.max_events <= 0:
            raise ValueError(f"max_events must be positive, got {self.max_events}")

    @property
    def event_cap(self) -> Optional[int]:
        """Maximum accepted events for the run, or None when uncapped."""
        return self.max_events if self.event_limit else None


@dataclass(frozen=True)
class HelicityConfig:
    """
    Beam helicity assigned from a file's position in the list.

    Files are expected to be listed with constant helicity per file: positions
    below switch_position get 0, positions up to max_position get 1. This is a
    per-deployment constant, not something read from the files.
    """

    switch_position: int = 5
    max_position: int = 10

    def __post_init__(self):
        if self.switch_position < 0:
            raise ValueError(f"switch_position must be non-negative, got {self.switch_position}")
        if self.max_position < self.switch_position:
            raise ValueError(
                f"max_position ({self.max_position}) must not be less than "
                f"switch_position ({self.switch_position})"
            )

    def helicity_for(self, position: int) -> Optional[int]:
        """Return the helicity for a 0-based file position, None if out of range."""
        if position < 0 or position >= self.max_position:
            return None
        return 0 if position < self.switch_position else 1


@dataclass(frozen=True)
class OutputConfig:
    """ROOT output for the conversion modes."""

    output_path: str = "output.root"
    event_tree_name: str = "TCSevent"
    info_tree_name: str = "TCSinfo"
    chunk_size_events: int = 10_000

    def __post_init__(self):
        if not self.output_path:
            raise ValueError("output_path cannot be empty")
        if self.event_tree_name == self.info_tree_name:
            raise ValueError("event_tree_name and info_tree_name must differ")
        if self.chunk_size_events <= 0:
            raise ValueError(f"chunk_size_events must be positive, got {self.chunk_size_events}")


@dataclass(frozen=True)
class SplitConfig:
    """Output naming for split mode."""

    output_dir: str = "."
    prefix: str = "dvcsD"
    proton_tag: str = "prot"
    neutron_tag: str = "neut"

    def __post_init__(self):
        if not self.prefix:
            raise ValueError("prefix cannot be empty")
        if self.proton_tag == self.neutron_tag:
            raise ValueError("proton_tag and neutron_tag must differ")

    def output_path(self, tag: str, position: int) -> str:
        """Path of one split stream, e.g. ./dvcsD_prot_0.dat"""
        return os.path.join(self.output_dir, f"{self.prefix}_{tag}_{position}.dat")


@dataclass(frozen=True)
class PipelineConfig:
    """
    Complete pipeline configuration.

    Immutable configuration object validated at creation.
    """

    mode: RunMode
    file_list_path: str

    mode_config: ModeConfig = field(default_factory=ModeConfig)
    helicity: HelicityConfig = field(default_factory=HelicityConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    split: SplitConfig = field(default_factory=SplitConfig)

    # Run metadata
    run_name: str = "event_conversion"
    show_progress: bool = False
    progress_interval: int = 10_000

    def __post_init__(self):
        """Validate pipeline configuration."""
        if not isinstance(self.mode, RunMode):
            raise ValueError(f"mode must be a RunMode, got {self.mode!r}")
        if not self.file_list_path:
            raise ValueError("file_list_path cannot be empty")
        if self.progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {self.progress_interval}")

    @property
    def writes_dataset(self) -> bool:
        """True for the modes that produce a ROOT dataset."""
        return self.mode in (RunMode.HEPMC, RunMode.LUND)

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'PipelineConfig':
        """
        Create PipelineConfig from a dictionary (e.g., loaded from YAML).

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            Validated PipelineConfig instance
        """
        run_metadata = config_dict.get("run_metadata", {}) or {}
        generator_dict = config_dict.get("generator", {}) or {}
        helicity_dict = config_dict.get("helicity", {}) or {}
        output_dict = config_dict.get("output", {}) or {}
        split_dict = config_dict.get("split", {}) or {}

        if "mode" not in run_metadata:
            raise ValueError("run_metadata.mode is required")
        if "file_list_path" not in run_metadata:
            raise ValueError("run_metadata.file_list_path is required")

        mode_config = ModeConfig(
            generator=GeneratorFamily.parse(generator_dict.get("family", "epic")),
            afterburner=bool(generator_dict.get("afterburner", False)),
            debug_echo=bool(generator_dict.get("debug_echo", False)),
            event_limit=bool(generator_dict.get("event_limit", False)),
            max_events=int(generator_dict.get("max_events", 200_000)),
        )

        helicity = HelicityConfig(
            switch_position=int(helicity_dict.get("switch_position", 5)),
            max_position=int(helicity_dict.get("max_position", 10)),
        )

        output = OutputConfig(
            output_path=output_dict.get("output_path", "output.root"),
            event_tree_name=output_dict.get("event_tree_name", "TCSevent"),
            info_tree_name=output_dict.get("info_tree_name", "TCSinfo"),
            chunk_size_events=int(output_dict.get("chunk_size_events", 10_000)),
        )

        split = SplitConfig(
            output_dir=split_dict.get("output_dir", "."),
            prefix=split_dict.get("prefix", "dvcsD"),
            proton_tag=split_dict.get("proton_tag", "prot"),
            neutron_tag=split_dict.get("neutron_tag", "neut"),
        )

        return cls(
            mode=RunMode.parse(run_metadata["mode"]),
            file_list_path=run_metadata["file_list_path"],
            mode_config=mode_config,
            helicity=helicity,
            output=output,
            split=split,
            run_name=run_metadata.get("run_name", "event_conversion"),
            show_progress=bool(run_metadata.get("show_progress", False)),
            progress_interval=int(run_metadata.get("progress_interval", 10_000)),
        )
