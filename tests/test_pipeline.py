"""
End-to-end tests for PipelineExecutor and the command line entry point.

Runs small generated input files through every mode and reads the outputs back.
"""

import json

import pytest
import uproot

from domain.config import (
    GeneratorFamily,
    ModeConfig,
    OutputConfig,
    PipelineConfig,
    RunMode,
    SplitConfig,
)
from main import main
from orchestration import PipelineState
from pipeline.executor import PipelineExecutor
from samples import (
    EPIC_PARTICLES,
    LUND_NEUTRON_EVENT,
    LUND_PROTON_EVENT,
    hepmc_text,
    lund_text,
    write,
)


def write_file_list(tmp_path, names) -> str:
    return write(tmp_path / "files.txt", "\n".join(names) + "\n")


class TestHepmcConversion:
    """Tests for the tagged-record conversion run."""

    def test_two_files_to_root(self, tmp_path):
        """Test that events and the combined cross-section are written."""
        first = write(tmp_path / "a.hepmc", hepmc_text([EPIC_PARTICLES] * 2, trailer=(2.0, 0.3)))
        second = write(tmp_path / "b.hepmc", hepmc_text([EPIC_PARTICLES], trailer=(1.0, 0.4)))
        output = str(tmp_path / "out" / "tcs.root")

        config = PipelineConfig(
            mode=RunMode.HEPMC,
            file_list_path=write_file_list(tmp_path, [first, first, second]),
            mode_config=ModeConfig(generator=GeneratorFamily.EPIC),
            output=OutputConfig(output_path=output, chunk_size_events=2),
        )
        context = PipelineExecutor(config).run()

        assert context.current_state == PipelineState.COMPLETED
        assert context.totals.events == 3
        assert context.totals.xsec == pytest.approx(3.0)
        assert context.totals.xsec_err == pytest.approx(0.5)
        assert [s.position for s in context.file_stats] == [0, 1]

        with uproot.open(output) as f:
            events = f["TCSevent"].arrays(library="np")
            info = f["TCSinfo"].arrays(library="np")

        assert len(events["ebeam_E"]) == 3
        assert events["ebeam_E"][0] == pytest.approx(11.0)
        assert events["lep_plus_pz"][0] == pytest.approx(80.0)
        assert list(events["helicity"]) == [0, 0, 0]
        assert info["xsec_total"][0] == pytest.approx(3.0)
        assert info["xsec_total_err"][0] == pytest.approx(0.5)
        assert info["events_total"][0] == 3

    def test_missing_input_is_skipped(self, tmp_path):
        """Test that an unopenable input does not stop the run."""
        good = write(tmp_path / "a.hepmc", hepmc_text([EPIC_PARTICLES], trailer=(1.0, 0.1)))
        config = PipelineConfig(
            mode=RunMode.HEPMC,
            file_list_path=write_file_list(tmp_path, [str(tmp_path / "gone.hepmc"), good]),
            output=OutputConfig(output_path=str(tmp_path / "tcs.root")),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        assert context.failed_files == [str(tmp_path / "gone.hepmc")]
        assert context.totals.events == 1
        assert context.file_stats[1].helicity == 0

    def test_empty_file_list(self, tmp_path):
        """Test that an empty list still produces an empty dataset."""
        output = str(tmp_path / "tcs.root")
        config = PipelineConfig(
            mode=RunMode.HEPMC,
            file_list_path=write_file_list(tmp_path, []),
            output=OutputConfig(output_path=output),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        with uproot.open(output) as f:
            assert f["TCSevent"].num_entries == 0
            assert f["TCSinfo"].arrays(library="np")["xsec_total"][0] == 0.0


class TestLundConversion:
    """Tests for the fixed-count conversion run."""

    def test_only_accepted_events_written(self, tmp_path):
        """Test that rejected events are counted but not written."""
        bad = list(LUND_PROTON_EVENT)
        bad[1] = 13
        source = write(tmp_path / "a.lund", lund_text([
            (LUND_PROTON_EVENT, 2212),
            (bad, 2212),
            (LUND_NEUTRON_EVENT, 2112),
        ]))
        output = str(tmp_path / "lund.root")
        config = PipelineConfig(
            mode=RunMode.LUND,
            file_list_path=write_file_list(tmp_path, [source]),
            output=OutputConfig(output_path=output),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        assert context.totals.events == 2
        assert context.totals.events_read == 3
        assert context.file_stats[0].validation_failures == 1

        with uproot.open(output) as f:
            events = f["TCSevent"].arrays(library="np")

        assert list(events["beamE"]) == pytest.approx([10.6, 10.6])
        assert list(events["xsec"]) == pytest.approx([1.5, 1.5])
        assert events["electron_px"][0] == pytest.approx(0.1)
        assert events["recoil_E"][1] == pytest.approx(6.0)

    def test_event_cap(self, tmp_path):
        """Test that the run stops once the cap is reached."""
        source = write(tmp_path / "a.lund", lund_text([(LUND_PROTON_EVENT, 2212)] * 5))
        config = PipelineConfig(
            mode=RunMode.LUND,
            file_list_path=write_file_list(tmp_path, [source, source + ".unused"]),
            mode_config=ModeConfig(event_limit=True, max_events=3),
            output=OutputConfig(output_path=str(tmp_path / "lund.root")),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        assert context.cap_reached
        assert context.totals.events == 3
        assert len(context.file_stats) == 1

    def test_undecodable_file_then_good_file(self, tmp_path):
        """Test that bad bytes in one input keep its earlier events and the run goes on."""
        broken = tmp_path / "a.lund"
        broken.write_bytes(
            lund_text([(LUND_PROTON_EVENT, 2212)] * 2).encode("utf-8") + b"\xff\xfe garbage\n"
        )
        good = write(tmp_path / "b.lund", lund_text([(LUND_PROTON_EVENT, 2212)] * 3))
        output = str(tmp_path / "lund.root")
        config = PipelineConfig(
            mode=RunMode.LUND,
            file_list_path=write_file_list(tmp_path, [str(broken), good]),
            output=OutputConfig(output_path=output),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        assert context.totals.events == 5
        assert [s.events_accepted for s in context.file_stats] == [2, 3]
        assert context.file_stats[0].format_violations == 1

        with uproot.open(output) as f:
            assert f["TCSevent"].num_entries == 5


class TestSplitMode:
    """Tests for the split run."""

    def test_events_routed_by_active_nucleon(self, tmp_path):
        """Test that each input gets its own pair of streams."""
        first = write(tmp_path / "a.lund", lund_text([
            (LUND_PROTON_EVENT, 2212),
            (LUND_NEUTRON_EVENT, 2112),
            (LUND_PROTON_EVENT, 2212),
        ]))
        second = write(tmp_path / "b.lund", lund_text([(LUND_NEUTRON_EVENT, 2212)]))
        split_dir = tmp_path / "split"

        config = PipelineConfig(
            mode=RunMode.SPLIT,
            file_list_path=write_file_list(tmp_path, [first, second]),
            split=SplitConfig(output_dir=str(split_dir)),
        )
        context = PipelineExecutor(config).run()

        assert context.is_successful
        assert context.totals.proton_events == 2
        assert context.totals.neutron_events == 1
        assert context.file_stats[1].unclassified_events == 1
        assert len(context.output_files) == 4

        proton_lines = (split_dir / "dvcsD_prot_0.dat").read_text().splitlines()
        neutron_lines = (split_dir / "dvcsD_neut_0.dat").read_text().splitlines()
        assert len(proton_lines) == 12
        assert len(neutron_lines) == 6
        assert neutron_lines[0].split()[7] == "2112"
        assert (split_dir / "dvcsD_prot_1.dat").read_text() == ""
        assert (split_dir / "dvcsD_neut_1.dat").read_text() == ""


class TestFailures:
    """Tests for runs that cannot start."""

    def test_missing_file_list(self, tmp_path):
        """Test that an unreadable file list fails the run."""
        config = PipelineConfig(
            mode=RunMode.HEPMC,
            file_list_path=str(tmp_path / "nope.txt"),
            output=OutputConfig(output_path=str(tmp_path / "tcs.root")),
        )
        context = PipelineExecutor(config).run()

        assert context.current_state == PipelineState.FAILED
        assert context.has_error
        assert "nope.txt" in context.error_message


class TestMain:
    """Tests for the command line entry point."""

    def test_dry_run(self, tmp_path):
        """Test that a dry run validates options and returns success."""
        code = main([
            "--config", str(tmp_path / "missing.yaml"),
            "--mode", "hepmc",
            "--file-list", "files.txt",
            "--dry-run",
        ])
        assert code == 0

    def test_missing_config_without_options(self, tmp_path):
        """Test that a run with neither config nor options fails."""
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1

    def test_full_run_with_summary(self, tmp_path):
        """Test a split run from the command line with a JSON summary."""
        source = write(tmp_path / "a.lund", lund_text([(LUND_PROTON_EVENT, 2212)]))
        summary = tmp_path / "summary.json"

        code = main([
            "--config", str(tmp_path / "missing.yaml"),
            "--mode", "split",
            "--file-list", write_file_list(tmp_path, [source]),
            "--split-dir", str(tmp_path / "split"),
            "--summary-json", str(summary),
        ])

        assert code == 0
        data = json.loads(summary.read_text())
        assert data["totals"]["proton_events"] == 1
        assert data["files"][0]["file_name"] == source


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
