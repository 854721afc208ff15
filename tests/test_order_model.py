from datetime import UTC, datetime

from fleet_orders.pipeline.core import (
    Order,
    StageTransitionEvent,
    actual_completion,
    planned_eta,
)
from fleet_orders.pipeline.stages import Stage, TerminalState


def test_from_record_camel_case():
    order = Order.from_record(
        {
            "id": "ORD-1",
            "status": "AT_UPFITTER",
            "createdAt": "2025-01-01T00:00:00Z",
            "oemEta": "2025-01-20T00:00:00Z",
            "actualOemCompleted": "2025-01-22T00:00:00Z",
            "priority": "High",
            "pricingJson": {"total": 90000, "chassisMsrp": 60000, "bodyPrice": 20000},
            "events": [
                {"toStage": "OEM_ALLOCATED", "occurredAt": "2025-01-03T00:00:00Z"},
            ],
        }
    )
    assert order.status is Stage.AT_UPFITTER
    assert order.created_at == datetime(2025, 1, 1, tzinfo=UTC)
    assert planned_eta(order, Stage.AT_UPFITTER) == datetime(2025, 1, 20, tzinfo=UTC)
    assert actual_completion(order, Stage.AT_UPFITTER) == datetime(
        2025, 1, 22, tzinfo=UTC
    )
    assert order.total_price == 90000
    assert order.pricing is not None
    assert order.pricing.chassis_msrp == 60000
    assert order.events[0].to_stage is Stage.OEM_ALLOCATED


def test_from_record_snake_case_and_stock():
    order = Order.from_record(
        {
            "id": 7,
            "status": "cancelled",
            "created_at": "2025-02-01",
            "inventory_status": "STOCK",
        }
    )
    assert order.id == "7"
    assert order.is_canceled
    assert order.status is TerminalState.CANCELED
    assert order.is_stock
    assert order.total_price == 0.0


def test_from_record_degrades_bad_fields():
    order = Order.from_record(
        {
            "id": "ORD-X",
            "status": "LOST_IN_SPACE",
            "createdAt": "not a date",
            "deliveryEta": 12,
            "pricingJson": "oops",
            "events": [{"toStage": "NOWHERE", "occurredAt": "garbage"}, "junk"],
        }
    )
    assert order.status is None
    assert order.created_at is None
    assert order.pricing is None
    assert len(order.events) == 1
    assert order.events[0].to_stage is None
    assert order.events[0].occurred_at is None


def test_from_record_id_fallback():
    assert Order.from_record({"id": None, "status": "DELIVERED"}).id == ""
    assert Order.from_record({"status": "DELIVERED"}).id == ""
    assert Order.from_record({"id": 0}).id == "0"


def test_non_milestone_stages_have_no_plan():
    order = Order(id="A", status=Stage.DELIVERED, created_at=None)
    assert planned_eta(order, Stage.OEM_PRODUCTION) is None
    assert actual_completion(order, Stage.CONFIG_RECEIVED) is None


def test_with_events_returns_copy():
    order = Order(id="A", status=Stage.OEM_ALLOCATED, created_at=None)
    event = StageTransitionEvent(
        to_stage=Stage.OEM_ALLOCATED, occurred_at=datetime(2025, 1, 2, tzinfo=UTC)
    )
    updated = order.with_events([event])
    assert updated.events == (event,)
    assert order.events == ()
