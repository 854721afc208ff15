from datetime import UTC, datetime, timedelta

import pytest

from fleet_orders.analytics import CreditForecaster
from fleet_orders.analytics.forecast import collection_class_labels
from fleet_orders.pipeline.core import Order, PricingSnapshot
from fleet_orders.pipeline.stages import Stage
from fleet_orders.timeline import build_timeline

AS_OF = datetime(2025, 7, 1, tzinfo=UTC)

PRICING = PricingSnapshot(total=90_000, chassis_msrp=60_000, body_price=20_000, labor=4_000)


def book():
    orders = [
        Order(
            id="D1",
            status=Stage.DELIVERED,
            created_at=AS_OF - timedelta(days=100),
            actual_delivery_completed=AS_OF - timedelta(days=20),
            pricing=PRICING,
        ),
        Order(
            id="D2",
            status=Stage.DELIVERED,
            created_at=AS_OF - timedelta(days=120),
            actual_delivery_completed=AS_OF - timedelta(days=70),
            pricing=PRICING,
        ),
        Order(
            id="W1",
            status=Stage.AT_UPFITTER,
            created_at=AS_OF - timedelta(days=30),
            pricing=PRICING,
        ),
    ]
    return [build_timeline(o) for o in orders]


def test_six_monthly_periods():
    forecast = CreditForecaster().forecast(book(), AS_OF)
    assert len(forecast.periods) == 6
    assert [p.period for p in forecast.periods] == [1, 2, 3, 4, 5, 6]
    assert [p.month for p in forecast.periods] == [
        "2025-08", "2025-09", "2025-10", "2025-11", "2025-12", "2026-01",
    ]
    assert forecast.is_estimate


def test_balance_identity():
    forecast = CreditForecaster().forecast(book(), AS_OF)
    assert forecast.periods[0].opening_balance == pytest.approx(forecast.starting_balance)
    for prev, cur in zip(forecast.periods, forecast.periods[1:]):
        assert cur.opening_balance == pytest.approx(prev.closing_balance)
    for p in forecast.periods:
        assert p.closing_balance == pytest.approx(
            p.opening_balance + p.projected_inflow - p.projected_collection
        )
        assert p.available_credit == pytest.approx(
            max(0.0, forecast.credit_ceiling - p.closing_balance)
        )
        assert p.utilization_pct == pytest.approx(
            p.closing_balance / forecast.credit_ceiling * 100
        )


def test_starting_position():
    forecaster = CreditForecaster()
    forecast = forecaster.forecast(book(), AS_OF)
    vehicle_cost = 60_000 * 0.85 + 20_000 * 0.80 + 4_000 * 0.70
    assert forecast.outstanding_receivables == pytest.approx(180_000)
    assert forecast.pipeline_inventory_cost == pytest.approx(vehicle_cost)
    assert forecast.starting_balance == pytest.approx(180_000 + vehicle_cost)
    assert forecast.avg_monthly_intake_cost > 0


def test_same_seed_same_forecast():
    assert CreditForecaster().forecast(book(), AS_OF) == CreditForecaster().forecast(
        book(), AS_OF
    )


def test_collection_follows_receivable_age():
    config = {"forecast": {"intake_variation_pct": 0.0, "credit_ceiling": 1_000_000}}
    order = Order(
        id="R1",
        status=Stage.DELIVERED,
        created_at=AS_OF - timedelta(days=90),
        actual_delivery_completed=AS_OF - timedelta(days=45),
        pricing=PricingSnapshot(total=100_000),
    )
    forecast = CreditForecaster(config).forecast([build_timeline(order)], AS_OF)
    first, second = forecast.periods[:2]

    # 31-60 day class collects at 75%, the remainder ages into 61+ at 50%
    assert first.projected_collection == pytest.approx(75_000)
    assert first.closing_balance == pytest.approx(25_000)
    assert first.utilization_pct == pytest.approx(2.5)
    assert first.available_credit == pytest.approx(975_000)
    assert second.projected_collection == pytest.approx(12_500)


def test_empty_book():
    forecast = CreditForecaster().forecast([], AS_OF)
    assert forecast.starting_balance == 0.0
    assert len(forecast.periods) == 6
    assert all(p.closing_balance == 0.0 for p in forecast.periods)
    assert all(p.available_credit == forecast.credit_ceiling for p in forecast.periods)
    assert forecast.peak_utilization_pct == 0.0


def test_horizon_is_configurable():
    forecast = CreditForecaster({"forecast": {"horizon_periods": 3}}).forecast([], AS_OF)
    assert len(forecast.periods) == 3


def test_age_classes_follow_aging_edges():
    config = {
        "aging": {"bucket_edges": [15, 45, 90]},
        "forecast": {"intake_variation_pct": 0.0},
    }
    order = Order(
        id="R2",
        status=Stage.DELIVERED,
        created_at=AS_OF - timedelta(days=60),
        actual_delivery_completed=AS_OF - timedelta(days=20),
        pricing=PricingSnapshot(total=100_000),
    )
    forecaster = CreditForecaster(config)
    assert forecaster.collection_classes == ("0-15", "16-45", "46+")

    forecast = forecaster.forecast([build_timeline(order)], AS_OF)
    # 20 days old falls in the middle class once the first edge is 15
    assert forecast.periods[0].projected_collection == pytest.approx(75_000)


def test_collection_class_labels():
    assert collection_class_labels((30, 60, 90)) == ("0-30", "31-60", "61+")
