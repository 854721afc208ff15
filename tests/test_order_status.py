from datetime import UTC, datetime, timedelta

import pytest

from fleet_orders.analytics import DeliveryStatus, SalesStatus, delivery_status, sales_status
from fleet_orders.pipeline.core import Order
from fleet_orders.pipeline.stages import Stage, TerminalState
from fleet_orders.timeline import build_timeline

AS_OF = datetime(2025, 7, 1, tzinfo=UTC)


def in_flight(eta_offset_days: float | None, **kwargs) -> Order:
    eta = None if eta_offset_days is None else AS_OF + timedelta(days=eta_offset_days)
    return Order(
        id="ORD-1",
        status=Stage.UPFIT_IN_PROGRESS,
        created_at=AS_OF - timedelta(days=30),
        delivery_eta=eta,
        **kwargs,
    )


@pytest.mark.parametrize(
    "offset, expected",
    [
        (-3, DeliveryStatus.DELAYED),
        (3, DeliveryStatus.ON_TIME),
        (7, DeliveryStatus.ON_TIME),
        (10, DeliveryStatus.AHEAD),
        (None, DeliveryStatus.ON_TIME),
    ],
)
def test_delivery_status_against_eta(offset, expected):
    result = delivery_status(build_timeline(in_flight(offset)), AS_OF)
    assert result.status is expected


def test_delayed_reports_days_late():
    result = delivery_status(build_timeline(in_flight(-3)), AS_OF)
    assert result.days_late == 3
    assert result.reference_eta == AS_OF - timedelta(days=3)


def test_upfitter_eta_is_fallback_reference():
    order = Order(
        id="ORD-2",
        status=Stage.AT_UPFITTER,
        created_at=AS_OF - timedelta(days=20),
        upfitter_eta=AS_OF - timedelta(days=1),
    )
    result = delivery_status(build_timeline(order), AS_OF)
    assert result.status is DeliveryStatus.DELAYED
    assert result.reference_eta == order.upfitter_eta


def test_terminal_statuses():
    delivered = Order(id="D", status=Stage.DELIVERED, created_at=None)
    canceled = Order(id="C", status=TerminalState.CANCELED, created_at=None)
    assert delivery_status(build_timeline(delivered), AS_OF).status is DeliveryStatus.DELIVERED
    assert delivery_status(build_timeline(canceled), AS_OF).status is DeliveryStatus.CANCELED


def test_ahead_threshold_is_configurable():
    tl = build_timeline(in_flight(5))
    assert delivery_status(tl, AS_OF, ahead_threshold_days=3).status is DeliveryStatus.AHEAD


class TestSalesStatus:
    def test_stock(self) -> None:
        tl = build_timeline(in_flight(5, is_stock=True))
        assert sales_status(tl, AS_OF) is SalesStatus.STOCK

    def test_po_received_until_delivered(self) -> None:
        assert sales_status(build_timeline(in_flight(5)), AS_OF) is SalesStatus.PO_RECEIVED

    def test_invoiced_then_paid(self) -> None:
        delivered = AS_OF - timedelta(days=10)
        order = Order(
            id="ORD-3",
            status=Stage.DELIVERED,
            created_at=AS_OF - timedelta(days=60),
            actual_delivery_completed=delivered,
            payment_received_at=AS_OF - timedelta(days=2),
        )
        tl = build_timeline(order)
        assert sales_status(tl, AS_OF) is SalesStatus.PAYMENT_RECEIVED
        assert sales_status(tl, AS_OF - timedelta(days=5)) is SalesStatus.INVOICED
        assert sales_status(tl, AS_OF - timedelta(days=20)) is SalesStatus.PO_RECEIVED
