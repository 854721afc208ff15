"""Fleet rollups: aging, on-time rate, stage delays, SLA and credit forecast."""

from fleet_orders.analytics.accumulator import WelfordAccumulator
from fleet_orders.analytics.fleet import (
    AgingBucket,
    AgingReport,
    FleetAggregator,
    FleetReport,
    FleetSummary,
    MonthlyVolume,
    OnTimeSummary,
    OperationsSummary,
    ReceivableEntry,
    SlaCompliance,
    StageDelayStat,
    aggregate_orders,
)
from fleet_orders.analytics.forecast import (
    CreditForecast,
    CreditForecaster,
    ForecastPeriod,
)
from fleet_orders.analytics.report import render_fleet_report
from fleet_orders.analytics.status import (
    DeliveryStatus,
    DeliveryStatusResult,
    SalesStatus,
    delivery_status,
    sales_status,
)

__all__ = [
    "AgingBucket",
    "AgingReport",
    "CreditForecast",
    "CreditForecaster",
    "DeliveryStatus",
    "DeliveryStatusResult",
    "FleetAggregator",
    "FleetReport",
    "FleetSummary",
    "ForecastPeriod",
    "MonthlyVolume",
    "OnTimeSummary",
    "OperationsSummary",
    "ReceivableEntry",
    "SalesStatus",
    "SlaCompliance",
    "StageDelayStat",
    "WelfordAccumulator",
    "aggregate_orders",
    "delivery_status",
    "render_fleet_report",
    "sales_status",
]
