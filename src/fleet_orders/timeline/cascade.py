"""
Delay attribution across the three planned milestones.

An order only counts as on time when no milestone overran its plan. Early
finishes downstream do not cancel out an upstream overrun.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from fleet_orders.pipeline.stages import Stage
from fleet_orders.timeline.variance import OrderTimeline

UPSTREAM_MILESTONES: tuple[Stage, ...] = (Stage.AT_UPFITTER, Stage.READY_FOR_DELIVERY)
FINAL_MILESTONE = Stage.DELIVERED


class ScheduleClass(enum.Enum):
    AHEAD = "ahead_of_schedule"
    ON_TIME = "on_time"
    BEHIND = "behind_schedule"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StageOverrun:
    stage: Stage
    days_late: int


@dataclass(frozen=True)
class CascadeResult:
    order_id: str
    classification: ScheduleClass
    oem_variance_days: int | None
    upfit_variance_days: int | None
    delivery_variance_days: int | None
    cumulative_variance_days: int | None
    overruns: tuple[StageOverrun, ...] = ()

    @property
    def is_on_time(self) -> bool:
        return self.classification in (ScheduleClass.ON_TIME, ScheduleClass.AHEAD)

    @property
    def masked_delay(self) -> bool:
        """Delivery looked on time by itself but an upstream milestone ran late."""
        return (
            self.classification is ScheduleClass.BEHIND
            and self.delivery_variance_days is not None
            and self.delivery_variance_days <= 0
        )


def cumulative_variance(
    oem: int | None, upfit: int | None, delivery: int | None
) -> int | None:
    """Delivery variance plus any upstream lateness carried forward."""
    if delivery is None:
        return None
    return delivery + max(0, oem or 0) + max(0, upfit or 0)


def classify(oem: int | None, upfit: int | None, delivery: int | None) -> ScheduleClass:
    """
    Classify from the three milestone variances.

    Any known overrun makes the order BEHIND. Without a delivery variance an
    order with no overruns is UNKNOWN. Unknown upstream variances are not
    evidence of lateness.
    """
    known = [v for v in (oem, upfit, delivery) if v is not None]
    if any(v > 0 for v in known):
        return ScheduleClass.BEHIND
    if delivery is None:
        return ScheduleClass.UNKNOWN
    if all(v < 0 for v in known):
        return ScheduleClass.AHEAD
    return ScheduleClass.ON_TIME


def analyze_cascade(timeline: OrderTimeline) -> CascadeResult:
    oem, upfit = (timeline.variance(s) for s in UPSTREAM_MILESTONES)
    delivery = timeline.variance(FINAL_MILESTONE)

    overruns = tuple(
        StageOverrun(stage=stage, days_late=v)
        for stage, v in zip(
            (*UPSTREAM_MILESTONES, FINAL_MILESTONE), (oem, upfit, delivery)
        )
        if v is not None and v > 0
    )

    return CascadeResult(
        order_id=timeline.order_id,
        classification=classify(oem, upfit, delivery),
        oem_variance_days=oem,
        upfit_variance_days=upfit,
        delivery_variance_days=delivery,
        cumulative_variance_days=cumulative_variance(oem, upfit, delivery),
        overruns=overruns,
    )
