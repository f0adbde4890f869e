"""
CCPM Engine
===========

Run a critical chain analysis, and optionally a forecast, from the command line.
"""

import argparse
import json
import sys
from datetime import datetime

from .config import EngineConfig
from .examples.simple_project import create_sample_project, print_report
from .exceptions import CCPMError
from .logger import setup_logger
from .services.scheduler import CCPMScheduler


def main(argv=None):
    parser = argparse.ArgumentParser(description="Critical Chain Project Management engine")
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--input",
        type=str,
        help='JSON snapshot with "tasks" and "dependencies" lists',
    )
    parser.add_argument(
        "--config",
        type=str,
        help="JSON file with engine settings",
    )
    parser.add_argument(
        "--forecast",
        type=int,
        metavar="N",
        help="Also run a Monte Carlo forecast with N trials",
    )
    parser.add_argument("--seed", type=int, help="Random seed for the forecast")
    parser.add_argument(
        "--start", type=str, help="Project start (ISO date) for forecast finish dates"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity"
    )

    args = parser.parse_args(argv)
    setup_logger(args.verbose)

    if args.example:
        print("Running example project...")
        print_report(create_sample_project(), simulations=args.forecast or 1000, seed=args.seed)
        return 0

    if not args.input:
        parser.print_help()
        return 1

    try:
        config = None
        if args.config:
            with open(args.config) as f:
                config = EngineConfig.from_dict(json.load(f))

        with open(args.input) as f:
            scheduler = CCPMScheduler.from_snapshot(json.load(f), config=config)
        if args.start:
            scheduler.set_start_date(datetime.fromisoformat(args.start))

        output = {"analysis": scheduler.analyze().to_dict()}
        if args.forecast is not None:
            output["forecast"] = scheduler.forecast(args.forecast, seed=args.seed).to_dict()
    except CCPMError as e:
        print(json.dumps({"error": e.to_dict()}), file=sys.stderr)
        return 2

    print(json.dumps(output, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
