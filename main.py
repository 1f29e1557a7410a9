#!/usr/bin/env python3
"""
Main entry point for the generator event-file converter.

Supports:
  - hepmc: tagged-record (HepMC3 ASCII) files -> ROOT dataset
  - lund:  fixed-count (LUND) files -> ROOT dataset
  - split: fixed-count files -> per-file proton / neutron LUND streams

Every run reads a list of input files (one name per line), processes them in
order and reports per-file and combined statistics.
"""

import sys
import os
import logging
import argparse
import yaml

from domain.config import PipelineConfig
from pipeline.executor import PipelineExecutor


def setup_logging(level: str = "INFO"):
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generator event-file converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with the defaults in config.yaml
  python main.py

  # Convert EpIC HepMC files listed in files.txt
  python main.py --mode hepmc --file-list files.txt --output tcs.root

  # ToyMC files, stop after 50000 accepted events
  python main.py --mode hepmc --generator toymc --max-events 50000

  # Split LUND files by active nucleon into ./split/
  python main.py --mode split --file-list lund_files.txt --split-dir split

  # Dry-run to validate config
  python main.py --dry-run
        """
    )

    parser.add_argument(
        "--config", type=str, default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Validate configuration without running pipeline"
    )

    # --- Run overrides ---
    run_group = parser.add_argument_group("Run Options (override config)")
    run_group.add_argument(
        "--mode", type=str, choices=["hepmc", "lund", "split"], default=None,
        help="Which conversion to run"
    )
    run_group.add_argument(
        "--file-list", type=str, default=None,
        help="File with one input file name per line"
    )
    run_group.add_argument(
        "--output", type=str, default=None,
        help="Output ROOT file (hepmc / lund modes)"
    )
    run_group.add_argument(
        "--split-dir", type=str, default=None,
        help="Directory for the split streams (split mode)"
    )
    run_group.add_argument(
        "--summary-json", type=str, default=None,
        help="Also write the run summary and per-file statistics to this JSON file"
    )

    # --- Generator overrides ---
    gen_group = parser.add_argument_group("Generator Options (override config)")
    gen_group.add_argument(
        "--generator", type=str, choices=["epic", "toymc"], default=None,
        help="Generator family of the tagged-record files"
    )
    gen_group.add_argument(
        "--afterburner", action="store_true", default=None,
        help="Files were processed by the afterburner"
    )
    gen_group.add_argument(
        "--debug-echo", action="store_true", default=None,
        help="Echo every input line and role four-vector at DEBUG level"
    )
    gen_group.add_argument(
        "--max-events", type=int, default=None,
        help="Stop after this many accepted events (enables the event cap)"
    )
    gen_group.add_argument(
        "--progress", action="store_true", default=None,
        help="Show a progress bar over the file list"
    )

    args = parser.parse_args(argv)

    if args.max_events is not None and args.max_events <= 0:
        parser.error("--max-events must be positive")

    return args


def apply_overrides(config_dict: dict, args) -> dict:
    """Inject CLI options into the config dict (override YAML values)."""
    run_metadata = config_dict.setdefault("run_metadata", {})
    generator = config_dict.setdefault("generator", {})

    if args.mode is not None:
        run_metadata["mode"] = args.mode
    if args.file_list is not None:
        run_metadata["file_list_path"] = args.file_list
    if args.progress:
        run_metadata["show_progress"] = True

    if args.output is not None:
        config_dict.setdefault("output", {})["output_path"] = args.output
    if args.split_dir is not None:
        config_dict.setdefault("split", {})["output_dir"] = args.split_dir

    if args.generator is not None:
        generator["family"] = args.generator
    if args.afterburner:
        generator["afterburner"] = True
    if args.debug_echo:
        generator["debug_echo"] = True
    if args.max_events is not None:
        generator["event_limit"] = True
        generator["max_events"] = args.max_events

    return config_dict


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    log_level = "DEBUG" if args.debug_echo else args.log_level
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("Generator event-file converter")
    logger.info("=" * 60)

    try:
        if os.path.exists(args.config):
            logger.info(f"Loading configuration from: {args.config}")
            config_dict = load_config(args.config)
        elif args.mode and args.file_list:
            logger.info(f"No configuration file at {args.config}, using defaults")
            config_dict = {}
        else:
            logger.error(f"Configuration file not found: {args.config}")
            return 1

        config_dict = apply_overrides(config_dict, args)

        # Create validated config
        config = PipelineConfig.from_dict(config_dict)
        logger.info("Configuration loaded and validated successfully")
        logger.info(
            f"Mode: {config.mode.value}, generator: {config.mode_config.generator.value}, "
            f"afterburner: {config.mode_config.afterburner}"
        )

        if args.dry_run:
            logger.info("Dry run mode - configuration is valid, exiting")
            logger.info(f"File list: {config.file_list_path}")
            if config.writes_dataset:
                logger.info(f"Output file: {config.output.output_path}")
            else:
                logger.info(f"Split directory: {config.split.output_dir}")
            if config.mode_config.event_cap is not None:
                logger.info(f"Event cap: {config.mode_config.event_cap}")
            return 0

        # Create executor and run pipeline
        executor = PipelineExecutor(config)
        final_context = executor.run()

        if args.summary_json:
            executor.save_run_summary(args.summary_json, final_context)

        if final_context.is_successful:
            logger.info("✓ Pipeline completed successfully")
            return 0
        else:
            logger.error(f"✗ Pipeline failed: {final_context.error_message}")
            return 1

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
