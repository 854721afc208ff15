"""
Canonical fulfillment pipeline for commercial-vehicle orders.

An order moves forward through eight stages, or drops into the terminal
CANCELED state from any point. CANCELED has no ordinal position.
"""

from __future__ import annotations

import enum
from typing import Any


class Stage(enum.IntEnum):
    CONFIG_RECEIVED = 0
    OEM_ALLOCATED = 1
    OEM_PRODUCTION = 2
    OEM_IN_TRANSIT = 3
    AT_UPFITTER = 4
    UPFIT_IN_PROGRESS = 5
    READY_FOR_DELIVERY = 6
    DELIVERED = 7

    @property
    def code(self) -> str:
        return self.name

    @property
    def label(self) -> str:
        return STAGE_LABELS[self.name]

    @classmethod
    def from_value(cls, value: Any) -> Stage | None:
        """Resolve a stage from an enum, name string or ordinal; None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


class TerminalState(enum.Enum):
    CANCELED = "CANCELED"

    @property
    def code(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return STAGE_LABELS[self.value]


OrderStatus = Stage | TerminalState

PIPELINE: tuple[Stage, ...] = tuple(Stage)

STAGE_LABELS = {
    "CONFIG_RECEIVED": "Order Received",
    "OEM_ALLOCATED": "OEM Allocated",
    "OEM_PRODUCTION": "OEM Production",
    "OEM_IN_TRANSIT": "OEM In Transit",
    "AT_UPFITTER": "At Upfitter",
    "UPFIT_IN_PROGRESS": "Upfit In Progress",
    "READY_FOR_DELIVERY": "Ready For Delivery",
    "DELIVERED": "Delivered",
    "CANCELED": "Canceled",
}


def parse_status(value: Any) -> OrderStatus | None:
    """Map a raw status to a Stage or TerminalState. Unrecognized values give None."""
    if isinstance(value, TerminalState):
        return value
    if isinstance(value, str) and value.strip().upper() in ("CANCELED", "CANCELLED"):
        return TerminalState.CANCELED
    return Stage.from_value(value)


def stage_index(status: Any) -> int | None:
    """Ordinal position of a status in the pipeline; None for CANCELED or unknown."""
    stage = status if isinstance(status, Stage) else Stage.from_value(status)
    if stage is None:
        return None
    return int(stage)


def is_before(a: Any, b: Any) -> bool:
    """True when stage a strictly precedes stage b. Unknown on either side is False."""
    ia, ib = stage_index(a), stage_index(b)
    if ia is None or ib is None:
        return False
    return ia < ib


def is_reached(current: Any, target: Any) -> bool:
    """True when the current status is at or past the target stage."""
    ic, it = stage_index(current), stage_index(target)
    if ic is None or it is None:
        return False
    return ic >= it


def is_terminal(status: Any) -> bool:
    return parse_status(status) is TerminalState.CANCELED


def get_status_label(status: Any) -> str:
    parsed = parse_status(status)
    if parsed is None:
        return str(status)
    return parsed.label
