"""Command line entry point: ``python -m demin_sim``."""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from demin_sim.engine import run
from demin_sim.logger import get_logger
from demin_sim.models.config import SimulationConfig, default_config, validate_config
from demin_sim.reports import logsheet_frame, timeline_frame

logger = get_logger()


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="demin_sim",
        description="Simulate one 8-hour shift of a DM water treatment plant.",
    )
    parser.add_argument("--config", help="JSON configuration file (default plant if omitted)")
    parser.add_argument(
        "--shift",
        choices=["A", "B", "C"],
        help="Override the shift named in the configuration",
    )
    parser.add_argument("--timeline-csv", help="Write the per-minute timeline to this CSV")
    parser.add_argument("--logsheet-csv", help="Write the operator logsheet to this CSV")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity of progress messages",
    )
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> SimulationConfig:
    if args.config is None:
        return default_config(args.shift or "A")
    with open(args.config, "r", encoding="utf-8") as f:
        data = json.load(f)
    if args.shift:
        data["shift"] = args.shift
    return SimulationConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    get_logger(level=args.log_level)

    try:
        config = _load_config(args)
    except (OSError, KeyError, TypeError, ValueError) as exc:
        logger.error("Could not read configuration: %s", exc)
        return 2

    errors = validate_config(config)
    if errors:
        for err in errors:
            logger.error("Invalid configuration: %s", err)
        return 2

    result = run(config)

    print(f"{result.shift_info.name} summary")
    for key, value in result.summary.to_dict().items():
        print(f"  {key:<26} {value}")

    if args.timeline_csv:
        timeline_frame(result).to_csv(args.timeline_csv)
        logger.info("Timeline written to %s", args.timeline_csv)
    if args.logsheet_csv:
        logsheet_frame(result).to_csv(args.logsheet_csv, index=False)
        logger.info("Logsheet written to %s", args.logsheet_csv)
    return 0


if __name__ == "__main__":
    sys.exit(main())
