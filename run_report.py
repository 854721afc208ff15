"""
Fleet Order Timeline Report Runner.

Usage:
    poetry run python run_report.py                          # Demo order book, as of now
    poetry run python run_report.py --input orders.json      # Real order snapshot
    poetry run python run_report.py --as-of 2025-06-30       # Fixed reporting instant
    poetry run python run_report.py --no-export              # Print only
"""

import argparse
import json
import logging
import os
import time
from datetime import UTC, datetime

from fleet_orders.analytics.fleet import FleetAggregator
from fleet_orders.analytics.forecast import CreditForecaster
from fleet_orders.analytics.report import render_fleet_report
from fleet_orders.config.loader import load_pipeline_config
from fleet_orders.generators.demo_orders import DemoOrderGenerator
from fleet_orders.pipeline.core import Order
from fleet_orders.pipeline.dates import parse_timestamp
from fleet_orders.timeline.reconstructor import TimelineReconstructor
from fleet_orders.timeline.service import build_timeline
from fleet_orders.writers.report_writer import ReportWriter


def load_orders(path: str) -> tuple[Order, ...]:
    """Read a JSON list of order records (camelCase or snake_case keys)."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("orders", [])
    return tuple(Order.from_record(r) for r in data if isinstance(r, dict))


def main() -> None:
    """Reconstruct order timelines and print the fleet report."""
    parser = argparse.ArgumentParser(
        description="Fleet Order Timeline Report Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  poetry run python run_report.py --orders 40 --no-export
  poetry run python run_report.py --input data/orders.json --output-dir data/report
        """,
    )

    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help="JSON file with order records (default: generate a demo order book)",
    )
    parser.add_argument(
        "--orders",
        type=int,
        default=None,
        help="Number of demo orders to generate (default: from config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for the demo order book (default: 42)",
    )
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Reporting instant, ISO-8601 (default: now, UTC)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON file whose keys override the bundled pipeline_config.json",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="data/report",
        help="Directory for CSV artifacts",
    )
    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Skip CSV export",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_pipeline_config(args.config)
    as_of = parse_timestamp(args.as_of) if args.as_of else datetime.now(UTC)
    if as_of is None:
        parser.error(f"Could not parse --as-of value: {args.as_of!r}")

    if args.input:
        print(f"Loading orders from {args.input}...")
        orders = load_orders(args.input)
    else:
        print(f"Generating demo order book (seed={args.seed})...")
        orders = DemoOrderGenerator(config, seed=args.seed).generate(as_of, args.orders)

    start_time = time.time()

    reconstructor = TimelineReconstructor(config)
    timelines = [build_timeline(o, reconstructor=reconstructor) for o in orders]
    report = FleetAggregator(config).aggregate(timelines, as_of)
    forecast = CreditForecaster(config).forecast(timelines, as_of, aging=report.aging)

    duration = time.time() - start_time
    print(f"Processed {len(timelines)} orders in {duration:.3f} seconds.")

    clamped = sum(1 for tl in timelines if tl.adjustments)
    if clamped:
        print(f"{clamped} orders had inconsistent history normalized.")

    text = render_fleet_report(report, forecast)
    print("\n" + text + "\n")

    if not args.no_export:
        writer = ReportWriter(args.output_dir)
        writer.write_timelines(timelines)
        writer.write_clamp_adjustments(timelines)
        writer.write_fleet_report(report)
        writer.write_forecast(forecast)
        report_path = os.path.join(str(writer.output_dir), "fleet_report.txt")
        with open(report_path, "w") as f:
            f.write(text)
        print(f"Artifacts saved to {writer.output_dir}")


if __name__ == "__main__":
    main()
