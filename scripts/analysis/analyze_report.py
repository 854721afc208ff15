#!/usr/bin/env python
"""Summarize exported fleet report CSVs (run_report.py output)."""

import argparse
import json
from pathlib import Path

import pandas as pd


def analyze_report(report_dir: str) -> dict:
    """Load report artifacts and return summary statistics."""
    report_path = Path(report_dir)

    if not report_path.exists():
        raise FileNotFoundError(f"Report directory not found: {report_dir}")

    stats = {}

    timelines_file = report_path / "stage_timelines.csv"
    if timelines_file.exists():
        stages = pd.read_csv(timelines_file)
        resolved = stages.dropna(subset=["timestamp"])
        stats["timelines"] = {
            "orders": int(stages["order_id"].nunique()),
            "stage_rows": len(stages),
            "resolved_share": float(len(resolved) / len(stages)) if len(stages) else 0.0,
            "source_breakdown": stages["source"].value_counts().to_dict(),
            "median_duration_by_stage": (
                stages.groupby("stage", sort=False)["duration_days"].median().to_dict()
            ),
            "clamped_rows": int(stages["clamped"].astype(bool).sum()),
        }

    cascades_file = report_path / "order_cascades.csv"
    if cascades_file.exists():
        cascades = pd.read_csv(cascades_file)
        delivered = cascades.dropna(subset=["delivery_variance_days"])
        raw_on_time = delivered["delivery_variance_days"] <= 0
        cascade_on_time = delivered["classification"].isin(
            ["on_time", "ahead_of_schedule"]
        )
        stats["cascades"] = {
            "classification": cascades["classification"].value_counts().to_dict(),
            "raw_on_time_rate": float(raw_on_time.mean()) if len(delivered) else 0.0,
            "cascade_on_time_rate": (
                float(cascade_on_time.mean()) if len(delivered) else 0.0
            ),
            "cumulative_delay": (
                cascades["cumulative_variance_days"].describe().to_dict()
            ),
        }

    volume_file = report_path / "monthly_volume.csv"
    if volume_file.exists():
        volume = pd.read_csv(volume_file)
        stats["volume"] = {
            "months": len(volume),
            "orders": int(volume["orders"].sum()),
            "deliveries": int(volume["deliveries"].sum()),
            "busiest_month": (
                str(volume.loc[volume["orders"].idxmax(), "month"]) if len(volume) else None
            ),
        }

    forecast_file = report_path / "credit_forecast.csv"
    if forecast_file.exists():
        forecast = pd.read_csv(forecast_file)
        stats["forecast"] = {
            "periods": len(forecast),
            "peak_utilization_pct": float(forecast["utilization_pct"].max()),
            "min_available_credit": float(forecast["available_credit"].min()),
        }

    return stats


def print_report(stats: dict) -> None:
    """Print formatted analysis report."""
    print("=" * 60)
    print("         FLEET REPORT ANALYSIS")
    print("=" * 60)

    if "timelines" in stats:
        t = stats["timelines"]
        print("\n--- TIMELINES ---")
        print(f"  Orders:                {t['orders']:,}")
        print(f"  Resolved stage share:  {t['resolved_share']:.1%}")
        print(f"  Timestamp sources:     {t['source_breakdown']}")
        print(f"  Clamped stages:        {t['clamped_rows']}")
        print("  Median duration by stage:")
        for stage, days in t["median_duration_by_stage"].items():
            print(f"    {stage}: {days}")

    if "cascades" in stats:
        c = stats["cascades"]
        print("\n--- DELAY ATTRIBUTION ---")
        print(f"  Classification:        {c['classification']}")
        print(f"  Raw on-time rate:      {c['raw_on_time_rate']:.1%}")
        print(f"  Cascade on-time rate:  {c['cascade_on_time_rate']:.1%}")

    if "volume" in stats:
        v = stats["volume"]
        print("\n--- MONTHLY VOLUME ---")
        print(f"  Months:                {v['months']}")
        print(f"  Orders / deliveries:   {v['orders']:,} / {v['deliveries']:,}")
        print(f"  Busiest month:         {v['busiest_month']}")

    if "forecast" in stats:
        f = stats["forecast"]
        print("\n--- CREDIT FORECAST (estimate) ---")
        print(f"  Periods:               {f['periods']}")
        print(f"  Peak utilization:      {f['peak_utilization_pct']:.1f}%")
        print(f"  Min available credit:  ${f['min_available_credit']:,.0f}")

    print("\n" + "=" * 60)


def main():
    parser = argparse.ArgumentParser(description="Analyze fleet report artifacts")
    parser.add_argument(
        "report_dir",
        nargs="?",
        default="data/report",
        help="Path to report directory (default: data/report)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON instead of formatted report",
    )

    args = parser.parse_args()
    stats = analyze_report(args.report_dir)

    if args.json:
        print(json.dumps(stats, indent=2, default=str))
    else:
        print_report(stats)


if __name__ == "__main__":
    main()
