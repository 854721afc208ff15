from datetime import UTC, datetime

from fleet_orders.config.loader import load_pipeline_config
from fleet_orders.generators import DemoOrderGenerator
from fleet_orders.pipeline.stages import Stage, TerminalState

AS_OF = datetime(2025, 6, 30, tzinfo=UTC)


def test_generates_requested_count():
    orders = DemoOrderGenerator(seed=1).generate(AS_OF, count=25)
    assert len(orders) == 25
    assert [o.id for o in orders][:2] == ["ORD-00001", "ORD-00002"]
    assert len({o.id for o in orders}) == 25


def test_same_seed_same_book():
    a = DemoOrderGenerator(seed=3).generate(AS_OF, count=20)
    b = DemoOrderGenerator(seed=3).generate(AS_OF, count=20)
    assert [(o.status, o.created_at, o.total_price) for o in a] == [
        (o.status, o.created_at, o.total_price) for o in b
    ]


def test_orders_are_plausible():
    orders = DemoOrderGenerator(seed=5).generate(AS_OF, count=60)
    for order in orders:
        assert isinstance(order.status, (Stage, TerminalState))
        assert order.created_at is not None
        assert order.created_at <= AS_OF
        assert order.total_price > 0
        if order.payment_received_at is not None:
            assert order.status is Stage.DELIVERED
            assert not order.is_stock
            assert order.payment_received_at <= AS_OF
        for ev in order.events:
            if isinstance(ev.to_stage, Stage):
                assert ev.occurred_at <= AS_OF


def test_default_count_comes_from_config():
    config = load_pipeline_config()
    orders = DemoOrderGenerator(config, seed=42).generate(AS_OF)
    assert len(orders) == config["demo"]["order_count"]
