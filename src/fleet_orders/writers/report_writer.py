"""CSV export of per-order timelines and fleet report tables."""

import csv
from pathlib import Path
from typing import Any

from fleet_orders.analytics.fleet import FleetReport
from fleet_orders.analytics.forecast import CreditForecast
from fleet_orders.timeline.variance import OrderTimeline
from fleet_orders.writers.base import BaseWriter


class ReportWriter(BaseWriter):
    """Writes timelines and each fleet table to its own CSV file."""

    def write_table(self, name: str, rows: list[dict[str, Any]]) -> Path | None:
        if not rows:
            return None

        filepath = self.output_dir / f"{name}.csv"
        fieldnames = list(rows[0].keys())

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
        return filepath

    def write_timelines(self, timelines: list[OrderTimeline]) -> Path | None:
        """One row per (order, stage) to stage_timelines.csv."""
        rows = [
            {"order_id": tl.order_id, **rec.to_dict()}
            for tl in timelines
            for rec in tl.records
        ]
        return self.write_table("stage_timelines", rows)

    def write_clamp_adjustments(self, timelines: list[OrderTimeline]) -> Path | None:
        rows = [
            {
                "order_id": tl.order_id,
                "stage": adj.stage.code,
                "source": adj.source.value,
                "original": adj.original.isoformat(),
                "adjusted": adj.adjusted.isoformat(),
            }
            for tl in timelines
            for adj in tl.adjustments
        ]
        return self.write_table("clamp_adjustments", rows)

    def write_fleet_report(self, report: FleetReport) -> list[Path]:
        """Write aging, SLA, stage delay, cascade, duration and volume tables."""
        written = [
            self.write_table(
                "aging_buckets",
                [
                    {"bucket": b.label, "count": b.count, "amount": round(b.amount, 2)}
                    for b in report.aging.buckets.values()
                ],
            ),
            self.write_table(
                "sla_compliance",
                [
                    {
                        "priority": s.priority,
                        "met": s.met,
                        "total": s.total,
                        "rate": round(s.rate, 4),
                    }
                    for s in report.sla.values()
                ],
            ),
            self.write_table(
                "stage_delays",
                [
                    {
                        "stage": stage.code,
                        "mean_days": round(stat.mean_days, 3) if stat else None,
                        "std_days": round(stat.std_days, 3) if stat else None,
                        "count": stat.count if stat else 0,
                    }
                    for stage, stat in report.stage_delays.items()
                ],
            ),
            self.write_table(
                "order_cascades",
                [
                    {
                        "order_id": c.order_id,
                        "classification": c.classification.value,
                        "oem_variance_days": c.oem_variance_days,
                        "upfit_variance_days": c.upfit_variance_days,
                        "delivery_variance_days": c.delivery_variance_days,
                        "cumulative_variance_days": c.cumulative_variance_days,
                    }
                    for c in report.cascades
                ],
            ),
            self.write_table(
                "stage_durations",
                [
                    {
                        "stage": stage.code,
                        "mean_days": round(stat.mean_days, 3) if stat else None,
                        "count": stat.count if stat else 0,
                    }
                    for stage, stat in report.operations.stage_durations.items()
                ],
            ),
            self.write_table(
                "monthly_volume",
                [
                    {"month": v.month, "orders": v.orders, "deliveries": v.deliveries}
                    for v in report.operations.monthly_volume
                ],
            ),
        ]
        return [p for p in written if p is not None]

    def write_forecast(self, forecast: CreditForecast) -> Path | None:
        rows = [
            {
                "period": p.period,
                "month": p.month,
                "opening_balance": round(p.opening_balance, 2),
                "projected_inflow": round(p.projected_inflow, 2),
                "projected_collection": round(p.projected_collection, 2),
                "closing_balance": round(p.closing_balance, 2),
                "available_credit": round(p.available_credit, 2),
                "utilization_pct": round(p.utilization_pct, 2),
            }
            for p in forecast.periods
        ]
        return self.write_table("credit_forecast", rows)
