"""Request-level entry point: order snapshot in, timeline out."""

from __future__ import annotations

from typing import Any

from fleet_orders.pipeline.core import Order, StageTransitionEvent
from fleet_orders.timeline.reconstructor import TimelineReconstructor
from fleet_orders.timeline.variance import OrderTimeline, compute_stage_records


def build_timeline(
    order: Order,
    events: list[StageTransitionEvent] | None = None,
    config: dict[str, Any] | None = None,
    reconstructor: TimelineReconstructor | None = None,
) -> OrderTimeline:
    """Reconstruct an order and attach durations and variances to every stage."""
    if reconstructor is None:
        reconstructor = TimelineReconstructor(config)
    resolved = reconstructor.reconstruct(order, events)
    return compute_stage_records(order, resolved)
