"""
Timeline reconstruction: a best-effort timestamp for every pipeline stage.

Resolution order per stage:
1. Explicit transition event (authoritative).
2. Order creation time, for the first stage only.
3. For reached stages: the milestone's actual-completion field, else an
   estimate from the nearest downstream planned ETA minus a stage offset.
4. Otherwise unresolved.

Estimates are kept between their observed neighbours, then any remaining
inversion (observations that disagree with each other) is clamped forward
and recorded.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from fleet_orders.pipeline.core import (
    MILESTONE_FIELDS,
    Order,
    StageTransitionEvent,
    actual_completion,
    planned_eta,
)
from fleet_orders.pipeline.dates import add_days
from fleet_orders.pipeline.stages import PIPELINE, Stage, is_reached

logger = logging.getLogger(__name__)

# Heuristic lead offsets (days before the nearest downstream planned ETA).
# Approximations, not measured values.
DEFAULT_ESTIMATE_OFFSETS_DAYS: dict[Stage, float] = {
    Stage.OEM_ALLOCATED: 3,
    Stage.OEM_PRODUCTION: 2,
    Stage.OEM_IN_TRANSIT: 1,
    Stage.AT_UPFITTER: 1,
    Stage.UPFIT_IN_PROGRESS: 2,
    Stage.READY_FOR_DELIVERY: 1,
    Stage.DELIVERED: 1,
}
DEFAULT_CLAMP_STEP_DAYS = 1.0


class TimestampSource(enum.Enum):
    EVENT = "event"
    CREATED = "created"
    ACTUAL = "actual"
    ESTIMATED = "estimated"
    UNKNOWN = "unknown"

    @property
    def is_observed(self) -> bool:
        return self in (
            TimestampSource.EVENT,
            TimestampSource.CREATED,
            TimestampSource.ACTUAL,
        )


@dataclass(frozen=True)
class ResolvedStage:
    stage: Stage
    timestamp: datetime | None
    source: TimestampSource
    planned_eta: datetime | None = None
    reached: bool = False
    clamped: bool = False


@dataclass(frozen=True)
class ClampAdjustment:
    """A resolved timestamp that was moved forward to keep the timeline ordered."""

    stage: Stage
    original: datetime
    adjusted: datetime
    source: TimestampSource


@dataclass(frozen=True)
class ResolvedTimeline:
    order_id: str
    stages: tuple[ResolvedStage, ...]
    adjustments: tuple[ClampAdjustment, ...] = ()

    def get(self, stage: Stage) -> ResolvedStage:
        return self.stages[int(stage)]

    def timestamp(self, stage: Stage) -> datetime | None:
        return self.stages[int(stage)].timestamp

    @property
    def is_consistent(self) -> bool:
        """False when the source history had to be rewritten."""
        return not self.adjustments


def first_event_per_stage(
    events: tuple[StageTransitionEvent, ...] | list[StageTransitionEvent],
) -> dict[Stage, datetime]:
    """Earliest usable event timestamp for each pipeline stage."""
    found: dict[Stage, datetime] = {}
    for event in events:
        if not isinstance(event.to_stage, Stage) or event.occurred_at is None:
            continue
        current = found.get(event.to_stage)
        if current is None or event.occurred_at < current:
            found[event.to_stage] = event.occurred_at
    return found


class TimelineReconstructor:
    """
    Resolves one order into a full, ordered stage timeline.

    Stateless apart from its configuration; safe to reuse across orders.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = (config or {}).get("timeline", {})

        self.offsets_days: dict[Stage, float] = dict(DEFAULT_ESTIMATE_OFFSETS_DAYS)
        for key, days in self.config.get("estimate_offsets_days", {}).items():
            stage = Stage.from_value(key)
            if stage is not None:
                self.offsets_days[stage] = float(days)

        self.clamp_step_days = float(
            self.config.get("clamp_step_days", DEFAULT_CLAMP_STEP_DAYS)
        )

    def reconstruct(
        self,
        order: Order,
        events: list[StageTransitionEvent] | None = None,
    ) -> ResolvedTimeline:
        """
        Build the resolved timeline for an order.

        Args:
            order: Order snapshot.
            events: Event log to use; defaults to the log carried on the order.

        Returns:
            ResolvedTimeline with one ResolvedStage per pipeline stage.
        """
        log = order.events if events is None else events
        by_stage = first_event_per_stage(log)

        resolved = [self._resolve_stage(order, stage, by_stage) for stage in PIPELINE]
        resolved = self._bound_estimates(resolved)
        stages, adjustments = self._enforce_monotonic(order.id, resolved)

        logger.debug(
            "Reconstructed %s: %d/%d stages resolved, %d clamped",
            order.id,
            sum(1 for s in stages if s.timestamp is not None),
            len(stages),
            len(adjustments),
        )
        return ResolvedTimeline(
            order_id=order.id, stages=tuple(stages), adjustments=tuple(adjustments)
        )

    def estimate(self, order: Order, stage: Stage) -> datetime | None:
        """Nearest downstream planned ETA minus this stage's offset."""
        for milestone in MILESTONE_FIELDS:
            if milestone < stage:
                continue
            eta = planned_eta(order, milestone)
            if eta is not None:
                return add_days(eta, -self.offsets_days.get(stage, 0.0))
        return None

    def _resolve_stage(
        self, order: Order, stage: Stage, events: dict[Stage, datetime]
    ) -> ResolvedStage:
        eta = planned_eta(order, stage)
        reached = is_reached(order.status, stage)

        def _make(ts: datetime | None, source: TimestampSource) -> ResolvedStage:
            return ResolvedStage(
                stage=stage, timestamp=ts, source=source, planned_eta=eta, reached=reached
            )

        if stage in events:
            return _make(events[stage], TimestampSource.EVENT)

        if stage == PIPELINE[0]:
            if order.created_at is not None:
                return _make(order.created_at, TimestampSource.CREATED)
            return _make(None, TimestampSource.UNKNOWN)

        if not reached:
            return _make(None, TimestampSource.UNKNOWN)

        actual = actual_completion(order, stage)
        if actual is not None:
            return _make(actual, TimestampSource.ACTUAL)

        estimated = self.estimate(order, stage)
        if estimated is not None:
            return _make(estimated, TimestampSource.ESTIMATED)

        return _make(None, TimestampSource.UNKNOWN)

    @staticmethod
    def _bound_estimates(resolved: list[ResolvedStage]) -> list[ResolvedStage]:
        """
        Keep every estimate between its observed neighbours.

        A backward pass caps each estimate at the earliest later observed
        timestamp; a forward pass then lifts it to the previous resolved
        timestamp. Observed timestamps are never moved here, so when the
        observations agree with each other the forward clamp has nothing to do.
        """
        bounded = list(resolved)

        ceiling: datetime | None = None
        for i in range(len(bounded) - 1, -1, -1):
            rs = bounded[i]
            if rs.timestamp is None:
                continue
            if rs.source.is_observed:
                if ceiling is None or rs.timestamp < ceiling:
                    ceiling = rs.timestamp
            elif ceiling is not None and rs.timestamp > ceiling:
                bounded[i] = replace(rs, timestamp=ceiling)

        floor: datetime | None = None
        for i, rs in enumerate(bounded):
            if rs.timestamp is None:
                continue
            if not rs.source.is_observed and floor is not None and rs.timestamp < floor:
                rs = bounded[i] = replace(rs, timestamp=floor)
            floor = rs.timestamp

        return bounded

    def _enforce_monotonic(
        self, order_id: str, resolved: list[ResolvedStage]
    ) -> tuple[list[ResolvedStage], list[ClampAdjustment]]:
        out: list[ResolvedStage] = []
        adjustments: list[ClampAdjustment] = []
        prev: datetime | None = None

        for rs in resolved:
            if rs.timestamp is None:
                out.append(rs)
                continue
            if prev is not None and rs.timestamp < prev:
                adjusted = add_days(prev, self.clamp_step_days)
                logger.warning(
                    "Order %s: %s timestamp %s precedes prior stage %s; clamped to %s",
                    order_id,
                    rs.stage.code,
                    rs.timestamp.isoformat(),
                    prev.isoformat(),
                    adjusted.isoformat(),
                )
                adjustments.append(
                    ClampAdjustment(
                        stage=rs.stage,
                        original=rs.timestamp,
                        adjusted=adjusted,
                        source=rs.source,
                    )
                )
                rs = replace(rs, timestamp=adjusted, clamped=True)
            out.append(rs)
            prev = rs.timestamp

        return out, adjustments
