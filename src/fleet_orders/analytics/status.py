"""Point-in-time delivery and sales status for a single order."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from fleet_orders.pipeline.dates import ceil_days
from fleet_orders.pipeline.stages import Stage
from fleet_orders.timeline.variance import OrderTimeline

DEFAULT_AHEAD_THRESHOLD_DAYS = 7


class DeliveryStatus(enum.Enum):
    DELIVERED = "delivered"
    DELAYED = "delayed"
    AHEAD = "ahead_of_schedule"
    ON_TIME = "on_time"
    CANCELED = "canceled"


class SalesStatus(enum.Enum):
    STOCK = "stock"
    PO_RECEIVED = "po_received"
    INVOICED = "invoiced"
    PAYMENT_RECEIVED = "payment_received"


@dataclass(frozen=True)
class DeliveryStatusResult:
    status: DeliveryStatus
    days_late: int | None = None
    reference_eta: datetime | None = None


def delivered_at(timeline: OrderTimeline) -> datetime | None:
    """Observed delivery timestamp, only for orders whose status is DELIVERED."""
    if timeline.order.status is not Stage.DELIVERED:
        return None
    return timeline.observed_timestamp(Stage.DELIVERED)


def is_paid(timeline: OrderTimeline, as_of: datetime) -> bool:
    paid = timeline.order.payment_received_at
    return paid is not None and paid <= as_of


def delivery_status(
    timeline: OrderTimeline,
    as_of: datetime,
    ahead_threshold_days: int = DEFAULT_AHEAD_THRESHOLD_DAYS,
) -> DeliveryStatusResult:
    """
    Compare an in-flight order with its nearest planned ETA as of a given instant.

    The reference ETA is the delivery ETA, falling back to the upfitter ETA
    and then the OEM ETA. With no ETA at all an order is assumed on time.
    """
    order = timeline.order
    if order.is_canceled:
        return DeliveryStatusResult(DeliveryStatus.CANCELED)
    if order.status is Stage.DELIVERED:
        return DeliveryStatusResult(DeliveryStatus.DELIVERED)

    eta = order.delivery_eta or order.upfitter_eta or order.oem_eta
    if eta is None:
        return DeliveryStatusResult(DeliveryStatus.ON_TIME)
    if as_of > eta:
        return DeliveryStatusResult(
            DeliveryStatus.DELAYED,
            days_late=max(1, ceil_days(eta, as_of)),
            reference_eta=eta,
        )
    if ceil_days(as_of, eta) > ahead_threshold_days:
        return DeliveryStatusResult(DeliveryStatus.AHEAD, reference_eta=eta)
    return DeliveryStatusResult(DeliveryStatus.ON_TIME, reference_eta=eta)


def sales_status(timeline: OrderTimeline, as_of: datetime) -> SalesStatus:
    order = timeline.order
    if order.is_stock:
        return SalesStatus.STOCK
    if is_paid(timeline, as_of):
        return SalesStatus.PAYMENT_RECEIVED
    delivered = delivered_at(timeline)
    if delivered is None or delivered > as_of:
        return SalesStatus.PO_RECEIVED
    return SalesStatus.INVOICED

