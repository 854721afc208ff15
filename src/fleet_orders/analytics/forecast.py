"""
Credit-utilization / cash-flow forecast.

A fixed-horizon, month-by-month projection of the money tied up in the
order book. It is an estimate for planning, never a ledger of record.

Model per period:
    inflow      = historical monthly intake cost * (1 + U(-v, +v))
    collection  = receivables . collection_probability   (by aging bucket)
    released    = pipeline inventory * release_fraction -> new receivables
    balance     = previous balance + inflow - collection
    available   = max(0, credit_ceiling - balance)
    utilization = balance / credit_ceiling * 100
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np

from fleet_orders.analytics.fleet import AgingReport, FleetAggregator
from fleet_orders.pipeline.dates import month_key
from fleet_orders.pipeline.stages import Stage
from fleet_orders.timeline.variance import OrderTimeline

if TYPE_CHECKING:
    from numpy.random import Generator

DEFAULT_HORIZON = 6
DEFAULT_CREDIT_CEILING = 5_000_000.0
DEFAULT_INTAKE_VARIATION = 0.15
DEFAULT_RELEASE_FRACTION = 1 / 3
DEFAULT_SEED = 42

# Collection probability per receivable age class, youngest first
DEFAULT_CLASS_PROBABILITIES = (1.00, 0.75, 0.50)


@dataclass(frozen=True)
class ForecastPeriod:
    period: int
    month: str
    opening_balance: float
    projected_inflow: float
    projected_collection: float
    closing_balance: float
    available_credit: float
    utilization_pct: float


@dataclass(frozen=True)
class CreditForecast:
    """Projected balances; ``is_estimate`` is always True."""

    starting_balance: float
    outstanding_receivables: float
    pipeline_inventory_cost: float
    avg_monthly_intake_cost: float
    credit_ceiling: float
    periods: tuple[ForecastPeriod, ...]
    is_estimate: bool = True

    @property
    def peak_utilization_pct(self) -> float:
        if not self.periods:
            return 0.0
        return max(p.utilization_pct for p in self.periods)


def collection_class_labels(edges: tuple[int, ...]) -> tuple[str, str, str]:
    """Three age classes from the first two aging edges, e.g. 0-30, 31-60, 61+."""
    young, mid = edges[:2]
    return (f"0-{young}", f"{young + 1}-{mid}", f"{mid + 1}+")


def _add_months(ts: datetime, months: int) -> datetime:
    total = ts.month - 1 + months
    return ts.replace(year=ts.year + total // 12, month=total % 12 + 1, day=1)


def _months_spanned(first: datetime, last: datetime) -> int:
    return max(1, (last.year - first.year) * 12 + (last.month - first.month) + 1)


class CreditForecaster:
    """Projects the credit line month by month from the current order book."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}
        fc = self.config.get("forecast", {})

        self.horizon = int(fc.get("horizon_periods", DEFAULT_HORIZON))
        self.credit_ceiling = float(fc.get("credit_ceiling", DEFAULT_CREDIT_CEILING))
        self.intake_variation = float(
            fc.get("intake_variation_pct", DEFAULT_INTAKE_VARIATION)
        )
        self.release_fraction = float(
            fc.get("pipeline_release_fraction", DEFAULT_RELEASE_FRACTION)
        )
        self.seed = int(fc.get("seed", DEFAULT_SEED))

        self.aggregator = FleetAggregator(self.config)

        # Age classes share the aging view's first two bucket edges
        self.class_edges = np.array(self.aggregator.bucket_edges[:2], dtype=np.int64)
        self.collection_classes = collection_class_labels(self.aggregator.bucket_edges)
        probs = fc.get("collection_probability", {})
        self.collection_probability = np.array(
            [
                float(probs.get(label, default))
                for label, default in zip(
                    self.collection_classes, DEFAULT_CLASS_PROBABILITIES
                )
            ],
            dtype=np.float64,
        )

    # --- inputs ----------------------------------------------------------------

    def receivables_by_class(self, aging: AgingReport) -> np.ndarray:
        """Collapse aging entries into the forecast's three age classes."""
        amounts = np.zeros(len(self.collection_classes), dtype=np.float64)
        for entry in aging.entries:
            idx = int(np.searchsorted(self.class_edges, entry.days_outstanding))
            amounts[idx] += entry.amount
        return amounts

    def pipeline_inventory_cost(self, timelines: list[OrderTimeline]) -> float:
        """Cost of vehicles still moving through the pipeline."""
        return float(
            sum(
                self.aggregator.vehicle_cost(tl.order)
                for tl in timelines
                if isinstance(tl.order.status, Stage)
                and tl.order.status is not Stage.DELIVERED
            )
        )

    def avg_monthly_intake_cost(
        self, timelines: list[OrderTimeline], as_of: datetime
    ) -> float:
        """Average cost of vehicles entering the pipeline per calendar month so far."""
        created: list[tuple[datetime, float]] = [
            (tl.order.created_at, self.aggregator.vehicle_cost(tl.order))
            for tl in timelines
            if tl.order.created_at is not None
            and tl.order.created_at <= as_of
            and not tl.order.is_canceled
        ]
        if not created:
            return 0.0
        months = _months_spanned(min(ts for ts, _ in created), as_of)
        total_cost = sum(cost for _, cost in created)
        return total_cost / months

    # --- projection ----------------------------------------------------------

    def forecast(
        self,
        timelines: list[OrderTimeline],
        as_of: datetime,
        aging: AgingReport | None = None,
    ) -> CreditForecast:
        timelines = list(timelines)
        if aging is None:
            aging = self.aggregator.aging(timelines, as_of)

        rng: Generator = np.random.default_rng(self.seed)
        receivables = self.receivables_by_class(aging)
        initial_pipeline = self.pipeline_inventory_cost(timelines)
        pipeline = initial_pipeline
        intake = self.avg_monthly_intake_cost(timelines, as_of)

        starting = float(receivables.sum() + pipeline)
        balance = starting
        periods: list[ForecastPeriod] = []

        for p in range(1, self.horizon + 1):
            factor = 1.0 + rng.uniform(-self.intake_variation, self.intake_variation)
            inflow = intake * factor
            collection = float(receivables @ self.collection_probability)

            released = pipeline * self.release_fraction
            pipeline = pipeline - released + inflow

            remaining = receivables * (1.0 - self.collection_probability)
            receivables = np.array(
                [released, remaining[0], remaining[1] + remaining[2]], dtype=np.float64
            )

            opening = balance
            balance = opening + inflow - collection
            periods.append(
                ForecastPeriod(
                    period=p,
                    month=month_key(_add_months(as_of, p)),
                    opening_balance=opening,
                    projected_inflow=inflow,
                    projected_collection=collection,
                    closing_balance=balance,
                    available_credit=max(0.0, self.credit_ceiling - balance),
                    utilization_pct=(
                        balance / self.credit_ceiling * 100.0
                        if self.credit_ceiling > 0
                        else 0.0
                    ),
                )
            )

        return CreditForecast(
            starting_balance=starting,
            outstanding_receivables=float(aging.total_outstanding),
            pipeline_inventory_cost=initial_pipeline,
            avg_monthly_intake_cost=intake,
            credit_ceiling=self.credit_ceiling,
            periods=tuple(periods),
        )
