"""Plain-text rendering of a fleet report for terminals and log files."""

from __future__ import annotations

from fleet_orders.analytics.fleet import FleetReport
from fleet_orders.analytics.forecast import CreditForecast


def _fmt_optional(value: float | None, fmt: str = "{:.1f}") -> str:
    return "no data" if value is None else fmt.format(value)


def render_fleet_report(
    report: FleetReport, forecast: CreditForecast | None = None
) -> str:
    s = report.summary
    lines = [
        "==================================================================",
        f"  FLEET ORDER REPORT  (as of {report.as_of:%Y-%m-%d %H:%M} UTC)",
        "==================================================================",
        f"Orders: {s.total_orders} total | {s.delivered_orders} delivered | "
        f"{s.active_orders} active | {s.canceled_orders} canceled",
        f"Avg lead time (days): {_fmt_optional(s.avg_lead_time_days)}",
        f"Avg gross margin:     {_fmt_optional(s.avg_gross_margin, '${:,.0f}')}",
        "",
        "--- On-Time Delivery (cascade-aware) ---",
        f"Eligible: {report.on_time.eligible}  On time: {report.on_time.on_time}  "
        f"Rate: {report.on_time.rate:.1%}",
        f"Masked upstream delays: {report.on_time.masked_delays}",
        f"Avg cumulative delay (days): "
        f"{_fmt_optional(report.on_time.avg_cumulative_delay_days)}",
        "",
        "--- Average Delay by Stage (days) ---",
    ]
    for stage, stat in report.stage_delays.items():
        if stat is None:
            lines.append(f"  {stage.label:<20} no data")
        else:
            lines.append(
                f"  {stage.label:<20} {stat.mean_days:+6.2f} "
                f"(sd {stat.std_days:.2f}, n={stat.count})"
            )

    ops = report.operations
    lines += [
        "",
        "--- Operations Timeline ---",
        f"  Avg OEM transit days: {_fmt_optional(ops.avg_phase_days['oem_transit'])}",
        f"  Avg upfit days:       {_fmt_optional(ops.avg_phase_days['upfit'])}",
        f"  Avg delivery days:    {_fmt_optional(ops.avg_phase_days['delivery'])}",
        f"  Total delay days:     {_fmt_optional(ops.total_delay_days, '{:d}')}",
    ]
    for segment, days in ops.lead_time_by_segment.items():
        lines.append(f"  Lead time ({segment}): {days:.1f} days")

    lines += ["", "--- SLA Compliance by Priority ---"]
    if not report.sla:
        lines.append("  no data")
    for sla in report.sla.values():
        lines.append(f"  {sla.priority:<10} {sla.rate:6.1%} ({sla.met}/{sla.total})")

    lines += ["", "--- Receivables Aging ---"]
    for bucket in report.aging.buckets.values():
        lines.append(f"  {bucket.label:<8} {bucket.count:4d}  ${bucket.amount:,.0f}")
    lines.append(f"  Outstanding: ${report.aging.total_outstanding:,.0f}")

    if forecast is not None:
        lines += [
            "",
            "--- Credit Utilization Forecast (estimate) ---",
            f"  Starting balance: ${forecast.starting_balance:,.0f} "
            f"of ${forecast.credit_ceiling:,.0f}",
        ]
        for p in forecast.periods:
            lines.append(
                f"  {p.month}  balance ${p.closing_balance:,.0f}  "
                f"available ${p.available_credit:,.0f}  {p.utilization_pct:5.1f}%"
            )

    return "\n".join(lines)
