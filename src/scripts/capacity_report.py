#!/usr/bin/env python3
"""
Print the team capacity summary and workload forecast.

Reads the time tracking database, computes logged-hours utilization for a
period and a weekly forecast from open tasks, and prints both as tables.

Usage:
    uv run python src/scripts/capacity_report.py --from 2025-11-01 --to 2025-11-30
    uv run python src/scripts/capacity_report.py --weeks 6 --project-mix
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH, DEFAULT_FORECAST_WEEKS, MAX_FORECAST_WEEKS, CapacityConfig
from services.capacity import get_capacity_forecast, get_capacity_summary
from services.reports import render_forecast, render_summary


def main(args: argparse.Namespace):
    """Main entry point."""
    config = CapacityConfig.from_env()
    print(
        f"Capacity: {config.weekly_hours:g}h/week, {config.monthly_hours:g}h/month "
        f"(warning at {config.warning_threshold:.0%}, critical at {config.critical_threshold:.0%})"
    )

    if not args.forecast_only:
        summary = get_capacity_summary(args.date_from, args.date_to, args.user, config, args.db)
        print()
        print("\n".join(render_summary(summary)))

    if not args.summary_only:
        forecast = get_capacity_forecast(args.start, args.weeks, args.user, args.project_mix, config, args.db)
        print()
        print("\n".join(render_forecast(forecast)))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print capacity summary and workload forecast")
    parser.add_argument(
        "--from",
        dest="date_from",
        help="Summary period start (YYYY-MM-DD). Defaults to the 1st of this month.",
    )
    parser.add_argument(
        "--to",
        dest="date_to",
        help="Summary period end (YYYY-MM-DD). Defaults to the end of this month.",
    )
    parser.add_argument("--user", type=int, help="Limit to a single engineer id.")
    parser.add_argument(
        "--start",
        help="Any date in the first forecast week. Defaults to next week.",
    )
    parser.add_argument(
        "--weeks",
        type=int,
        default=DEFAULT_FORECAST_WEEKS,
        help=f"Forecast length in weeks (1-{MAX_FORECAST_WEEKS}).",
    )
    parser.add_argument("--project-mix", action="store_true", help="Show top projects per engineer.")
    parser.add_argument("--db", type=Path, default=DB_PATH, help="Database path.")

    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--summary-only", action="store_true")
    scope.add_argument("--forecast-only", action="store_true")
    return parser


if __name__ == "__main__":
    main(build_parser().parse_args())
