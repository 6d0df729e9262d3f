#!/usr/bin/env python3
"""
Reef Telemetry Timeline - Orchestrator

Load the four CSV sources, normalize, bin and export the timeline dataset.

Usage:
    python -m reef_timeline --csv-dir csv --output data/data.js
    python -m reef_timeline --binning fixed_increment --time-increment-hours 48
    python -m reef_timeline --config timeline.yaml --summary outputs/run_summary.json
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime

from .common.config import Config, BinningStrategy
from .common.io import SourcePaths, SourceTables, load_sources
from .processing.stations import StationRegistry
from .processing.normalizer import RecordNormalizer
from .processing.extent import sort_and_compute_extent
from .processing.binner import bin_events
from .export.dataset_emitter import DatasetEmitter

logger = logging.getLogger(__name__)


def build_dataset(tables: SourceTables, config: Config) -> Dict[str, Any]:
    """
    Run every in-memory stage on already loaded sources.

    Returns:
        Dict with 'stations', 'events', 'report', 'extent', 'timeline'

    Raises:
        EmptyEventSetError: If no events survive normalization
        TimelineConsistencyError: If an event falls outside the timeline
    """
    stations = StationRegistry.from_records(tables.stations)

    logger.info("Processing data...")
    normalizer = RecordNormalizer(config, stations)
    events, report = normalizer.normalize_all([
        ("sharks", tables.sharks),
        ("mantas", tables.mantas),
        ("vessel", tables.vessel),
    ])

    sorted_events, extent = sort_and_compute_extent(events, config)
    timeline = bin_events(sorted_events, extent, config)

    return {
        "stations": stations,
        "events": sorted_events,
        "report": report,
        "extent": extent,
        "timeline": timeline,
    }


def run_pipeline(
    paths: SourcePaths,
    config: Config,
    output_path: Optional[Path] = None
) -> Dict[str, Any]:
    """
    Full batch run: read, process, write.

    Nothing is written unless every stage succeeds.

    Args:
        paths: CSV source locations
        config: Configuration
        output_path: Artifact path (default: config.output_path)

    Returns:
        Run summary dictionary
    """
    logger.info("Importing CSV data...")
    tables = load_sources(paths)

    result = build_dataset(tables, config)

    emitter = DatasetEmitter(config)
    written = emitter.export(
        result["extent"],
        result["stations"],
        result["timeline"],
        output_path
    )

    logger.info("Processing complete!")

    return {
        "timestamp": datetime.now().isoformat(),
        "config": config.to_dict(),
        "sources": {name: str(p) for name, p in dataclasses.asdict(paths).items()},
        "output": str(written),
        "n_stations": len(result["stations"]),
        "extent": result["extent"].to_dict(),
        "normalization": result["report"].to_dict(),
    }


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reef Telemetry Timeline - bin tracking data for the timeline client"
    )
    parser.add_argument(
        "--csv-dir",
        type=Path,
        default=None,
        help="Directory holding stations.csv, vessel.csv, sharks.csv, mantas.csv (default: csv)"
    )
    parser.add_argument("--stations", type=Path, default=None, help="Stations CSV override")
    parser.add_argument("--vessel", type=Path, default=None, help="Vessel CSV override")
    parser.add_argument("--sharks", type=Path, default=None, help="Sharks CSV override")
    parser.add_argument("--mantas", type=Path, default=None, help="Mantas CSV override")
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output artifact (.js or .json, default: data/data.js)"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML configuration file"
    )
    parser.add_argument(
        "--binning", "-b",
        choices=[s.value for s in BinningStrategy],
        default=None,
        help="Binning strategy (overrides config)"
    )
    parser.add_argument(
        "--time-increment-hours",
        type=float,
        default=None,
        help="Bucket width for fixed_increment binning (overrides config)"
    )
    parser.add_argument(
        "--var-name",
        default=None,
        help="Global variable name in the .js artifact (overrides config)"
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Write a JSON run summary to this path"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> Config:
    """Config file first, then command line overrides."""
    config = Config.from_yaml(args.config) if args.config else Config()

    overrides: Dict[str, Any] = {}
    if args.binning:
        overrides["binning"] = BinningStrategy(args.binning)
    if args.time_increment_hours is not None:
        overrides["time_increment_ms"] = int(args.time_increment_hours * 60 * 60 * 1000)
    if args.var_name:
        overrides["output_var_name"] = args.var_name
    if args.csv_dir:
        overrides["data_dir"] = args.csv_dir
    if args.output:
        overrides["output_path"] = args.output

    return dataclasses.replace(config, **overrides) if overrides else config


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = config_from_args(args)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    paths = SourcePaths.from_dir(
        config.data_dir,
        stations=args.stations,
        vessel=args.vessel,
        sharks=args.sharks,
        mantas=args.mantas,
    )

    logger.info(f"Binning: {config.binning.value} ({config.bucket_width_ms} ms buckets)")
    logger.info(f"Output: {config.output_path}")

    try:
        summary = run_pipeline(paths, config)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        return 1

    if args.summary:
        try:
            args.summary.parent.mkdir(parents=True, exist_ok=True)
            with open(args.summary, 'w') as f:
                json.dump(summary, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write summary {args.summary}: {e}")
            return 1
        logger.info(f"Summary saved to: {args.summary}")

    n_rejected = summary["normalization"]["n_rejected"]
    if n_rejected > 0:
        logger.warning(f"{n_rejected} rows were rejected; see log above for details")

    return 0


if __name__ == "__main__":
    sys.exit(main())
