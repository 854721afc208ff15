"""Stage pipeline definition and the order snapshot data model."""

from fleet_orders.pipeline.core import (
    MILESTONE_FIELDS,
    Order,
    PricingSnapshot,
    StageTransitionEvent,
    actual_completion,
    planned_eta,
)
from fleet_orders.pipeline.stages import (
    PIPELINE,
    Stage,
    TerminalState,
    get_status_label,
    is_before,
    is_reached,
    is_terminal,
    parse_status,
    stage_index,
)

__all__ = [
    "MILESTONE_FIELDS",
    "PIPELINE",
    "Order",
    "PricingSnapshot",
    "Stage",
    "StageTransitionEvent",
    "TerminalState",
    "actual_completion",
    "get_status_label",
    "is_before",
    "is_reached",
    "is_terminal",
    "parse_status",
    "planned_eta",
    "stage_index",
]
