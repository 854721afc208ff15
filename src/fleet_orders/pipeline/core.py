from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from fleet_orders.pipeline.dates import parse_timestamp
from fleet_orders.pipeline.stages import OrderStatus, Stage, TerminalState, parse_status


def _pick(record: dict[str, Any], *keys: str) -> Any:
    """First non-None value among alternative key spellings."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class StageTransitionEvent:
    """An append-only record of the order being advanced into to_stage."""

    to_stage: Stage | TerminalState | None
    occurred_at: datetime | None
    from_stage: Stage | TerminalState | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> StageTransitionEvent:
        return cls(
            to_stage=parse_status(_pick(record, "toStage", "to_stage", "to")),
            occurred_at=parse_timestamp(
                _pick(record, "occurredAt", "occurred_at", "at")
            ),
            from_stage=parse_status(_pick(record, "fromStage", "from_stage", "from")),
        )


@dataclass(frozen=True)
class PricingSnapshot:
    """Price components captured when the order was configured."""

    total: float = 0.0
    chassis_msrp: float = 0.0
    body_price: float = 0.0
    labor: float = 0.0
    options_price: float = 0.0

    @classmethod
    def from_record(cls, record: dict[str, Any] | None) -> PricingSnapshot | None:
        if not isinstance(record, dict):
            return None
        return cls(
            total=_as_float(record.get("total")) or 0.0,
            chassis_msrp=_as_float(_pick(record, "chassisMsrp", "chassis_msrp")) or 0.0,
            body_price=_as_float(_pick(record, "bodyPrice", "body_price")) or 0.0,
            labor=_as_float(record.get("labor")) or 0.0,
            options_price=_as_float(_pick(record, "optionsPrice", "options_price"))
            or 0.0,
        )


@dataclass(frozen=True)
class Order:
    """
    Read-only snapshot of one fulfillment order.

    The three planned ETAs and the three actual-completion dates cover the
    same milestones: OEM transit, upfit completion and final delivery.
    """

    id: str
    status: OrderStatus | None
    created_at: datetime | None

    # Planned milestones
    oem_eta: datetime | None = None
    upfitter_eta: datetime | None = None
    delivery_eta: datetime | None = None

    # Actual milestones
    actual_oem_completed: datetime | None = None
    actual_upfitter_completed: datetime | None = None
    actual_delivery_completed: datetime | None = None

    priority: str | None = None
    buyer_segment: str | None = None
    buyer_name: str | None = None
    pricing: PricingSnapshot | None = None
    events: tuple[StageTransitionEvent, ...] = field(default_factory=tuple)

    # Commercial state
    is_stock: bool = False
    payment_received_at: datetime | None = None

    @property
    def is_canceled(self) -> bool:
        return self.status is TerminalState.CANCELED

    @property
    def total_price(self) -> float:
        return self.pricing.total if self.pricing else 0.0

    def with_events(self, events: list[StageTransitionEvent]) -> Order:
        """Copy of this order carrying the given event log."""
        return replace(self, events=tuple(events))

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Order:
        """
        Build an Order from a loosely-typed dict (camelCase or snake_case keys).

        Unparseable fields degrade to None; nothing here raises on bad data.
        """
        raw_events = record.get("events") or []
        events = tuple(
            StageTransitionEvent.from_record(e) for e in raw_events if isinstance(e, dict)
        )
        inventory_status = _pick(record, "inventoryStatus", "inventory_status")
        is_stock = bool(_pick(record, "isStock", "is_stock")) or inventory_status == "STOCK"
        raw_id = _pick(record, "id")
        return cls(
            id="" if raw_id is None else str(raw_id),
            status=parse_status(record.get("status")),
            created_at=parse_timestamp(_pick(record, "createdAt", "created_at")),
            oem_eta=parse_timestamp(_pick(record, "oemEta", "oem_eta")),
            upfitter_eta=parse_timestamp(_pick(record, "upfitterEta", "upfitter_eta")),
            delivery_eta=parse_timestamp(_pick(record, "deliveryEta", "delivery_eta")),
            actual_oem_completed=parse_timestamp(
                _pick(record, "actualOemCompleted", "actual_oem_completed")
            ),
            actual_upfitter_completed=parse_timestamp(
                _pick(record, "actualUpfitterCompleted", "actual_upfitter_completed")
            ),
            actual_delivery_completed=parse_timestamp(
                _pick(record, "actualDeliveryCompleted", "actual_delivery_completed")
            ),
            priority=_pick(record, "priority"),
            buyer_segment=_pick(record, "buyerSegment", "buyer_segment"),
            buyer_name=_pick(record, "buyerName", "buyer_name"),
            pricing=PricingSnapshot.from_record(
                _pick(record, "pricingJson", "pricing_json", "pricing")
            ),
            events=events,
            is_stock=is_stock,
            payment_received_at=parse_timestamp(
                _pick(record, "paymentReceivedAt", "payment_received_at")
            ),
        )


# Milestone stage -> (planned ETA attribute, actual-completion attribute)
MILESTONE_FIELDS: dict[Stage, tuple[str, str]] = {
    Stage.AT_UPFITTER: ("oem_eta", "actual_oem_completed"),
    Stage.READY_FOR_DELIVERY: ("upfitter_eta", "actual_upfitter_completed"),
    Stage.DELIVERED: ("delivery_eta", "actual_delivery_completed"),
}


def planned_eta(order: Order, stage: Stage) -> datetime | None:
    fields = MILESTONE_FIELDS.get(stage)
    return getattr(order, fields[0]) if fields else None


def actual_completion(order: Order, stage: Stage) -> datetime | None:
    fields = MILESTONE_FIELDS.get(stage)
    return getattr(order, fields[1]) if fields else None
