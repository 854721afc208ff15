"""Per-order timeline reconstruction, durations, variances and delay attribution."""

from fleet_orders.timeline.cascade import (
    CascadeResult,
    ScheduleClass,
    StageOverrun,
    analyze_cascade,
    classify,
    cumulative_variance,
)
from fleet_orders.timeline.reconstructor import (
    ClampAdjustment,
    ResolvedStage,
    ResolvedTimeline,
    TimelineReconstructor,
    TimestampSource,
)
from fleet_orders.timeline.variance import (
    OrderTimeline,
    StageRecord,
    compute_stage_records,
    stage_duration,
    stage_variance,
)
from fleet_orders.timeline.service import build_timeline

__all__ = [
    "CascadeResult",
    "ClampAdjustment",
    "OrderTimeline",
    "ResolvedStage",
    "ResolvedTimeline",
    "ScheduleClass",
    "StageOverrun",
    "StageRecord",
    "TimelineReconstructor",
    "TimestampSource",
    "analyze_cascade",
    "build_timeline",
    "classify",
    "compute_stage_records",
    "cumulative_variance",
    "stage_duration",
    "stage_variance",
]
