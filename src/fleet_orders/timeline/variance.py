"""Per-stage durations and planned-vs-actual variances over a resolved timeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fleet_orders.pipeline.core import Order
from fleet_orders.pipeline.dates import ceil_days
from fleet_orders.pipeline.stages import Stage, stage_index
from fleet_orders.timeline.reconstructor import (
    ClampAdjustment,
    ResolvedStage,
    ResolvedTimeline,
    TimestampSource,
)


@dataclass(frozen=True)
class StageRecord:
    """Derived view of one stage. Never persisted; rebuilt on every request."""

    stage: Stage
    timestamp: datetime | None
    duration_days: int | None
    variance_days: int | None
    planned_eta: datetime | None = None
    source: TimestampSource = TimestampSource.UNKNOWN
    completed: bool = False
    current: bool = False
    clamped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage.code,
            "label": self.stage.label,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "duration_days": self.duration_days,
            "variance_days": self.variance_days,
            "planned_eta": self.planned_eta.isoformat() if self.planned_eta else None,
            "source": self.source.value,
            "completed": self.completed,
            "current": self.current,
            "clamped": self.clamped,
        }


@dataclass(frozen=True)
class OrderTimeline:
    order: Order
    records: tuple[StageRecord, ...]
    adjustments: tuple[ClampAdjustment, ...] = ()

    @property
    def order_id(self) -> str:
        return self.order.id

    def record(self, stage: Stage) -> StageRecord:
        return self.records[int(stage)]

    def variance(self, stage: Stage) -> int | None:
        return self.records[int(stage)].variance_days

    def observed_timestamp(self, stage: Stage) -> datetime | None:
        """Resolved timestamp, but only when it came from an observation."""
        rec = self.records[int(stage)]
        return rec.timestamp if rec.source.is_observed else None

    @property
    def total_duration_days(self) -> int:
        return sum(r.duration_days or 0 for r in self.records)


def stage_duration(previous: datetime | None, current: datetime | None) -> int | None:
    """Whole days between two consecutive stages, never negative."""
    if previous is None or current is None:
        return None
    return max(0, ceil_days(previous, current))


def stage_variance(
    planned: datetime | None, actual: datetime | None
) -> int | None:
    """Actual minus planned in whole days; positive means late."""
    if planned is None or actual is None:
        return None
    return ceil_days(planned, actual)


def _variance_for(rs: ResolvedStage) -> int | None:
    # Heuristic estimates are derived from the plan itself, so they carry no variance.
    if not rs.source.is_observed:
        return None
    return stage_variance(rs.planned_eta, rs.timestamp)


def compute_stage_records(order: Order, timeline: ResolvedTimeline) -> OrderTimeline:
    """
    Attach durations and variances to each resolved stage.

    Stage 0 has no predecessor and always reports a duration of 0.
    Later stages measure from the immediately preceding stage; when either
    side is unresolved the duration is unknown.
    """
    current_idx = stage_index(order.status)
    records: list[StageRecord] = []
    prev: ResolvedStage | None = None

    for rs in timeline.stages:
        if prev is None:
            duration = 0
        else:
            duration = stage_duration(prev.timestamp, rs.timestamp)

        records.append(
            StageRecord(
                stage=rs.stage,
                timestamp=rs.timestamp,
                duration_days=duration,
                variance_days=_variance_for(rs),
                planned_eta=rs.planned_eta,
                source=rs.source,
                completed=current_idx is not None and current_idx > int(rs.stage),
                current=current_idx is not None and current_idx == int(rs.stage),
                clamped=rs.clamped,
            )
        )
        prev = rs

    return OrderTimeline(
        order=order, records=tuple(records), adjustments=timeline.adjustments
    )
