"""
Fleet-level rollups over reconstructed order timelines.

Consumes OrderTimeline objects (see fleet_orders.timeline) and produces the
tables a dashboard needs: receivables aging, cascade-aware on-time rate,
per-stage average delay, SLA compliance by priority and a handful of summary
figures. Every figure is computed against an explicit ``as_of`` instant so the
same inputs always give the same report.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np

from fleet_orders.analytics.accumulator import WelfordAccumulator
from fleet_orders.analytics.status import (
    DEFAULT_AHEAD_THRESHOLD_DAYS,
    DeliveryStatus,
    SalesStatus,
    delivered_at,
    delivery_status,
    sales_status,
)
from fleet_orders.pipeline.core import Order
from fleet_orders.pipeline.dates import ceil_days, floor_days, month_key
from fleet_orders.pipeline.stages import PIPELINE, Stage, TerminalState
from fleet_orders.timeline.cascade import CascadeResult, ScheduleClass, analyze_cascade
from fleet_orders.timeline.reconstructor import TimelineReconstructor
from fleet_orders.timeline.service import build_timeline
from fleet_orders.timeline.variance import OrderTimeline

logger = logging.getLogger(__name__)

DEFAULT_AGING_WINDOW_DAYS = 90
DEFAULT_BUCKET_EDGES = (30, 60, 90)
DEFAULT_COST_RATIOS = {"chassis_msrp": 0.85, "body_price": 0.80, "labor": 0.70}

# Phase name -> (start stage, end stage); both ends must be observed
PHASES: dict[str, tuple[Stage, Stage]] = {
    "oem_transit": (Stage.CONFIG_RECEIVED, Stage.AT_UPFITTER),
    "upfit": (Stage.AT_UPFITTER, Stage.READY_FOR_DELIVERY),
    "delivery": (Stage.READY_FOR_DELIVERY, Stage.DELIVERED),
}


# =============================================================================
# Report records
# =============================================================================


@dataclass(frozen=True)
class ReceivableEntry:
    order_id: str
    delivered_at: datetime
    days_outstanding: int
    bucket: str
    amount: float


@dataclass
class AgingBucket:
    label: str
    count: int = 0
    amount: float = 0.0


@dataclass(frozen=True)
class AgingReport:
    buckets: dict[str, AgingBucket]
    entries: tuple[ReceivableEntry, ...] = ()
    excluded_count: int = 0  # Unpaid but older than the window

    @property
    def total_outstanding(self) -> float:
        return float(sum(b.amount for b in self.buckets.values()))

    def bucket_for(self, order_id: str) -> str | None:
        for entry in self.entries:
            if entry.order_id == order_id:
                return entry.bucket
        return None


@dataclass(frozen=True)
class OnTimeSummary:
    eligible: int
    on_time: int
    ahead: int
    behind: int
    masked_delays: int  # Behind overall although delivery alone looked on time
    rate: float
    total_cumulative_delay_days: int
    avg_cumulative_delay_days: float | None


@dataclass(frozen=True)
class StageDelayStat:
    stage: Stage
    mean_days: float
    std_days: float
    count: int


@dataclass(frozen=True)
class SlaCompliance:
    priority: str
    met: int
    total: int

    @property
    def rate(self) -> float:
        return self.met / self.total if self.total else 0.0


@dataclass(frozen=True)
class FleetSummary:
    total_orders: int
    delivered_orders: int
    active_orders: int
    canceled_orders: int
    avg_lead_time_days: float | None
    avg_gross_margin: float | None
    revenue_by_segment: dict[str, float] = field(default_factory=dict)
    delivery_status_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthlyVolume:
    month: str
    orders: int = 0
    deliveries: int = 0


@dataclass(frozen=True)
class OperationsSummary:
    """Timeline-derived rollups. None means no order qualified."""

    avg_phase_days: dict[str, float | None]
    total_delay_days: int | None
    lead_time_by_segment: dict[str, float]
    stage_durations: dict[Stage, StageDelayStat | None]
    monthly_volume: tuple[MonthlyVolume, ...] = ()


@dataclass(frozen=True)
class FleetReport:
    as_of: datetime
    summary: FleetSummary
    aging: AgingReport
    on_time: OnTimeSummary
    stage_delays: dict[Stage, StageDelayStat | None]
    sla: dict[str, SlaCompliance]
    operations: OperationsSummary
    cascades: tuple[CascadeResult, ...] = ()

    @property
    def on_time_rate(self) -> float:
        return self.on_time.rate


# =============================================================================
# Aggregator
# =============================================================================


def bucket_labels(edges: tuple[int, ...] | list[int]) -> list[str]:
    """Labels for consecutive day ranges, e.g. [30, 60, 90] -> 0-30 ... 90+."""
    labels = []
    lower = 0
    for edge in edges:
        labels.append(f"{lower}-{edge}")
        lower = edge + 1
    labels.append(f"{edges[-1]}+")
    return labels


class FleetAggregator:
    """Rolls reconstructed orders up into fleet-wide delivery and receivables tables."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        config = config or {}
        aging_config = config.get("aging", {})
        self.aging_window_days = int(
            aging_config.get("window_days", DEFAULT_AGING_WINDOW_DAYS)
        )
        self.bucket_edges = tuple(
            int(e) for e in aging_config.get("bucket_edges", DEFAULT_BUCKET_EDGES)
        )
        self.bucket_labels = bucket_labels(self.bucket_edges)

        status_config = config.get("delivery_status", {})
        self.ahead_threshold_days = int(
            status_config.get("ahead_threshold_days", DEFAULT_AHEAD_THRESHOLD_DAYS)
        )

        fin_config = config.get("financials", {})
        self.cost_ratios = {
            **DEFAULT_COST_RATIOS,
            **fin_config.get("cost_ratios", {}),
        }

    # --- per-order helpers ---------------------------------------------------

    def bucket_for_days(self, days: int) -> str:
        for edge, label in zip(self.bucket_edges, self.bucket_labels):
            if days <= edge:
                return label
        return self.bucket_labels[-1]

    def vehicle_cost(self, order: Order) -> float:
        """Estimated landed cost of the vehicle from its pricing snapshot."""
        p = order.pricing
        if p is None:
            return 0.0
        return (
            p.chassis_msrp * self.cost_ratios["chassis_msrp"]
            + p.body_price * self.cost_ratios["body_price"]
            + p.labor * self.cost_ratios["labor"]
        )

    # --- tables ----------------------------------------------------------------

    def aging(self, timelines: list[OrderTimeline], as_of: datetime) -> AgingReport:
        """
        Bucket delivered, unpaid orders by days since delivery.

        Orders delivered more than ``aging_window_days`` ago are left out and
        only counted in ``excluded_count``.
        """
        buckets = {label: AgingBucket(label) for label in self.bucket_labels}
        entries: list[ReceivableEntry] = []
        excluded = 0

        for tl in timelines:
            order = tl.order
            delivered = delivered_at(tl)
            if delivered is None:
                continue
            if sales_status(tl, as_of) is not SalesStatus.INVOICED:
                continue
            days = floor_days(delivered, as_of)
            if days > self.aging_window_days:
                excluded += 1
                continue
            label = self.bucket_for_days(days)
            buckets[label].count += 1
            buckets[label].amount += order.total_price
            entries.append(
                ReceivableEntry(
                    order_id=order.id,
                    delivered_at=delivered,
                    days_outstanding=days,
                    bucket=label,
                    amount=order.total_price,
                )
            )

        return AgingReport(
            buckets=buckets, entries=tuple(entries), excluded_count=excluded
        )

    def on_time(self, timelines: list[OrderTimeline]) -> OnTimeSummary:
        """Cascade-aware on-time rate over delivered orders with planned and actual dates."""
        results = [analyze_cascade(tl) for tl in self._eligible_for_on_time(timelines)]
        eligible = len(results)
        on_time = sum(1 for r in results if r.is_on_time)
        cumulative = [
            r.cumulative_variance_days
            for r in results
            if r.cumulative_variance_days is not None
        ]
        return OnTimeSummary(
            eligible=eligible,
            on_time=on_time,
            ahead=sum(1 for r in results if r.classification is ScheduleClass.AHEAD),
            behind=sum(1 for r in results if r.classification is ScheduleClass.BEHIND),
            masked_delays=sum(1 for r in results if r.masked_delay),
            rate=on_time / eligible if eligible else 0.0,
            total_cumulative_delay_days=int(sum(cumulative)),
            avg_cumulative_delay_days=(
                float(np.mean(cumulative)) if cumulative else None
            ),
        )

    def stage_delays(
        self, timelines: list[OrderTimeline]
    ) -> dict[Stage, StageDelayStat | None]:
        """Mean variance per stage; None where no order reports a variance."""
        return self._stage_stats(timelines, "variance_days", PIPELINE)

    def stage_durations(
        self, timelines: list[OrderTimeline]
    ) -> dict[Stage, StageDelayStat | None]:
        """Mean days spent entering each stage after the first."""
        return self._stage_stats(timelines, "duration_days", PIPELINE[1:])

    def phase_durations(
        self, timelines: list[OrderTimeline]
    ) -> dict[str, float | None]:
        """Average OEM transit, upfit and delivery phase lengths, observed ends only."""
        samples: dict[str, list[int]] = {name: [] for name in PHASES}
        for tl in timelines:
            for name, (start, end) in PHASES.items():
                started = tl.observed_timestamp(start)
                ended = tl.observed_timestamp(end)
                if started is not None and ended is not None:
                    samples[name].append(ceil_days(started, ended))
        return {
            name: float(np.mean(days)) if days else None
            for name, days in samples.items()
        }

    def total_delay_days(self, timelines: list[OrderTimeline]) -> int | None:
        """Sum of late delivery days; early deliveries count as zero."""
        delays = []
        for tl in timelines:
            variance = tl.variance(Stage.DELIVERED)
            if variance is not None:
                delays.append(max(0, variance))
        return sum(delays) if delays else None

    def lead_time_by_segment(
        self, timelines: list[OrderTimeline]
    ) -> dict[str, float]:
        by_segment: dict[str, list[int]] = {}
        for tl in timelines:
            lead_time = self._lead_time(tl)
            if lead_time is not None:
                by_segment.setdefault(self._segment(tl.order), []).append(lead_time)
        return {
            segment: float(np.mean(days))
            for segment, days in sorted(by_segment.items())
        }

    def monthly_volume(
        self, timelines: list[OrderTimeline]
    ) -> tuple[MonthlyVolume, ...]:
        """Orders created and orders delivered per calendar month."""
        created: Counter[str] = Counter()
        delivered: Counter[str] = Counter()
        for tl in timelines:
            if tl.order.created_at is not None:
                created[month_key(tl.order.created_at)] += 1
            done = delivered_at(tl)
            if done is not None:
                delivered[month_key(done)] += 1

        return tuple(
            MonthlyVolume(month=m, orders=created[m], deliveries=delivered[m])
            for m in sorted(set(created) | set(delivered))
        )

    def operations(self, timelines: list[OrderTimeline]) -> OperationsSummary:
        return OperationsSummary(
            avg_phase_days=self.phase_durations(timelines),
            total_delay_days=self.total_delay_days(timelines),
            lead_time_by_segment=self.lead_time_by_segment(timelines),
            stage_durations=self.stage_durations(timelines),
            monthly_volume=self.monthly_volume(timelines),
        )

    @staticmethod
    def _stage_stats(
        timelines: list[OrderTimeline],
        field_name: str,
        stages: tuple[Stage, ...],
    ) -> dict[Stage, StageDelayStat | None]:
        trackers = {stage: WelfordAccumulator() for stage in stages}
        for tl in timelines:
            for stage, acc in trackers.items():
                value = getattr(tl.record(stage), field_name)
                if value is not None:
                    acc.update(float(value))

        return {
            stage: (
                StageDelayStat(
                    stage=stage,
                    mean_days=acc.mean,
                    std_days=acc.std_dev,
                    count=acc.count,
                )
                if acc.has_data
                else None
            )
            for stage, acc in trackers.items()
        }

    def sla(self, timelines: list[OrderTimeline]) -> dict[str, SlaCompliance]:
        """Share of orders per priority whose actual delivery met the planned date."""
        met: Counter[str] = Counter()
        total: Counter[str] = Counter()
        for tl in timelines:
            priority = tl.order.priority
            planned = tl.order.delivery_eta
            actual = tl.observed_timestamp(Stage.DELIVERED)
            if not priority or planned is None or actual is None:
                continue
            total[priority] += 1
            if actual <= planned:
                met[priority] += 1

        return {
            p: SlaCompliance(priority=p, met=met[p], total=total[p])
            for p in sorted(total)
        }

    def summary(self, timelines: list[OrderTimeline], as_of: datetime) -> FleetSummary:
        orders = [tl.order for tl in timelines]
        delivered = [o for o in orders if o.status is Stage.DELIVERED]
        canceled = [o for o in orders if o.status is TerminalState.CANCELED]

        lead_times = [
            lt for lt in (self._lead_time(tl) for tl in timelines) if lt is not None
        ]

        margins = [
            o.total_price - self.vehicle_cost(o) for o in orders if o.total_price > 0
        ]

        revenue: dict[str, float] = {}
        for o in orders:
            if o.is_canceled:
                continue
            segment = self._segment(o)
            revenue[segment] = revenue.get(segment, 0.0) + o.total_price

        status_counts = Counter(
            delivery_status(tl, as_of, self.ahead_threshold_days).status.value
            for tl in timelines
        )

        return FleetSummary(
            total_orders=len(orders),
            delivered_orders=len(delivered),
            active_orders=len(orders) - len(delivered) - len(canceled),
            canceled_orders=len(canceled),
            avg_lead_time_days=float(np.mean(lead_times)) if lead_times else None,
            avg_gross_margin=float(np.mean(margins)) if margins else None,
            revenue_by_segment=revenue,
            delivery_status_counts={
                s.value: status_counts.get(s.value, 0) for s in DeliveryStatus
            },
        )

    def aggregate(self, timelines: list[OrderTimeline], as_of: datetime) -> FleetReport:
        timelines = list(timelines)
        report = FleetReport(
            as_of=as_of,
            summary=self.summary(timelines, as_of),
            aging=self.aging(timelines, as_of),
            on_time=self.on_time(timelines),
            stage_delays=self.stage_delays(timelines),
            sla=self.sla(timelines),
            operations=self.operations(timelines),
            cascades=tuple(analyze_cascade(tl) for tl in timelines),
        )
        logger.debug(
            "Aggregated %d orders: on_time_rate=%.3f, outstanding=%.2f",
            len(timelines),
            report.on_time.rate,
            report.aging.total_outstanding,
        )
        return report

    @staticmethod
    def _segment(order: Order) -> str:
        return order.buyer_segment or ("Dealer" if order.is_stock else "Fleet")

    @staticmethod
    def _lead_time(tl: OrderTimeline) -> int | None:
        """Creation to observed delivery, in whole days."""
        done = tl.observed_timestamp(Stage.DELIVERED)
        if tl.order.created_at is None or done is None:
            return None
        return ceil_days(tl.order.created_at, done)

    @staticmethod
    def _eligible_for_on_time(timelines: list[OrderTimeline]) -> list[OrderTimeline]:
        return [
            tl
            for tl in timelines
            if tl.order.status is Stage.DELIVERED
            and tl.order.delivery_eta is not None
            and tl.observed_timestamp(Stage.DELIVERED) is not None
        ]


def aggregate_orders(
    orders: list[Order] | tuple[Order, ...],
    as_of: datetime,
    config: dict[str, Any] | None = None,
) -> FleetReport:
    """Reconstruct every order, then aggregate. Convenience for callers holding raw orders."""
    reconstructor = TimelineReconstructor(config)
    timelines = [build_timeline(o, reconstructor=reconstructor) for o in orders]
    return FleetAggregator(config).aggregate(timelines, as_of)

