"""
DemoOrderGenerator - synthetic order book for demos, the CLI runner and tests.

Builds a plausible set of upfit orders relative to a fixed ``as_of`` instant:
a hidden "true" stage history is simulated first, then degraded into what a
real order record carries (a status, three planned ETAs, some actual dates
and a partial event log). The result is an immutable tuple; nothing is cached.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np
from faker import Faker

from fleet_orders.pipeline.core import (
    MILESTONE_FIELDS,
    Order,
    PricingSnapshot,
    StageTransitionEvent,
)
from fleet_orders.pipeline.dates import add_days
from fleet_orders.pipeline.stages import PIPELINE, Stage, TerminalState

if TYPE_CHECKING:
    from numpy.random import Generator

DEFAULT_ORDER_COUNT = 154
DEFAULT_HISTORY_DAYS = 180
DEFAULT_PRIORITIES = ("Low", "Normal", "High", "Urgent")

# Typical days spent entering each stage from the previous one (min, max)
STAGE_DURATION_RANGES: dict[Stage, tuple[int, int]] = {
    Stage.OEM_ALLOCATED: (1, 5),
    Stage.OEM_PRODUCTION: (3, 10),
    Stage.OEM_IN_TRANSIT: (2, 7),
    Stage.AT_UPFITTER: (2, 6),
    Stage.UPFIT_IN_PROGRESS: (1, 4),
    Stage.READY_FOR_DELIVERY: (5, 14),
    Stage.DELIVERED: (2, 6),
}

CHASSIS_BASE = {
    "E-350": 45000,
    "E-450": 52000,
    "F-350": 55000,
    "F-450": 64000,
    "F-550": 68000,
    "F-600": 72000,
    "F-650": 85000,
    "F-750": 95000,
}

BODY_BASE = {
    "Service Body": 18000,
    "Flatbed": 12000,
    "Dump Body": 15000,
    "Dry Freight Body": 16000,
    "Refrigerated Body": 25000,
    "Tow & Recovery": 22000,
    "Bucket": 28000,
}


class DemoOrderGenerator:
    """Generates a seeded, reproducible order book."""

    def __init__(self, config: dict[str, Any] | None = None, seed: int = 42) -> None:
        self.config = (config or {}).get("demo", {})
        self.seed = seed
        self.rng: Generator = np.random.default_rng(seed)

        self._faker = Faker()
        Faker.seed(seed)

        self.history_days = int(self.config.get("history_days", DEFAULT_HISTORY_DAYS))
        self.priorities = list(self.config.get("priorities", DEFAULT_PRIORITIES))
        self.stock_share = float(self.config.get("stock_share", 0.25))
        self.cancel_share = float(self.config.get("cancel_share", 0.03))
        self.event_coverage = float(self.config.get("event_coverage", 0.6))
        self.actuals_coverage = float(self.config.get("actuals_coverage", 0.8))
        self.eta_noise_days = float(self.config.get("eta_noise_days", 3.0))

    def generate(self, as_of: datetime, count: int | None = None) -> tuple[Order, ...]:
        if count is None:
            count = int(self.config.get("order_count", DEFAULT_ORDER_COUNT))
        return tuple(self._build_order(i, as_of) for i in range(count))

    def _pricing(self) -> PricingSnapshot:
        series = str(self.rng.choice(list(CHASSIS_BASE)))
        body = str(self.rng.choice(list(BODY_BASE)))
        chassis = CHASSIS_BASE[series] * (1 + self.rng.uniform(-0.05, 0.05))
        body_price = BODY_BASE[body] * (1 + self.rng.uniform(-0.06, 0.06))
        options = float(self.rng.integers(1000, 3500))
        labor = 3000.0 + float(self.rng.integers(0, 8)) * 200
        return PricingSnapshot(
            total=round(chassis + body_price + options + labor, 2),
            chassis_msrp=round(chassis, 2),
            body_price=round(body_price, 2),
            labor=labor,
            options_price=options,
        )

    def _true_history(self, created: datetime) -> dict[Stage, datetime]:
        history = {Stage.CONFIG_RECEIVED: created}
        ts = created
        for stage in PIPELINE[1:]:
            lo, hi = STAGE_DURATION_RANGES[stage]
            ts = add_days(ts, float(self.rng.integers(lo, hi + 1)))
            history[stage] = ts
        return history

    def _build_order(self, i: int, as_of: datetime) -> Order:
        created = add_days(as_of, -float(self.rng.uniform(3, self.history_days)))
        history = self._true_history(created)

        reached = [s for s in PIPELINE if history[s] <= as_of]
        status: Stage | TerminalState = reached[-1]
        canceled = self.rng.random() < self.cancel_share
        if canceled:
            status = TerminalState.CANCELED

        etas: dict[str, datetime] = {}
        actuals: dict[str, datetime] = {}
        for milestone, (eta_field, actual_field) in MILESTONE_FIELDS.items():
            noise = float(np.round(self.rng.normal(0.0, self.eta_noise_days)))
            etas[eta_field] = add_days(history[milestone], noise)
            if (
                not canceled
                and milestone in reached
                and self.rng.random() < self.actuals_coverage
            ):
                actuals[actual_field] = history[milestone]

        events = [
            StageTransitionEvent(to_stage=stage, occurred_at=history[stage])
            for stage in reached[1:]
            if self.rng.random() < self.event_coverage
        ]
        if canceled:
            events.append(
                StageTransitionEvent(
                    to_stage=TerminalState.CANCELED,
                    occurred_at=add_days(history[reached[-1]], 1.0),
                    from_stage=reached[-1],
                )
            )

        is_stock = self.rng.random() < self.stock_share
        payment = None
        if not is_stock and status is Stage.DELIVERED:
            paid_at = add_days(history[Stage.DELIVERED], float(self.rng.integers(5, 75)))
            if paid_at <= as_of:
                payment = paid_at

        return Order(
            id=f"ORD-{i + 1:05d}",
            status=status,
            created_at=created,
            priority=self.priorities[i % len(self.priorities)],
            buyer_segment="Dealer" if is_stock else "Fleet",
            buyer_name=None if is_stock else self._faker.company(),
            pricing=self._pricing(),
            events=tuple(events),
            is_stock=is_stock,
            payment_received_at=payment,
            **etas,
            **actuals,
        )
