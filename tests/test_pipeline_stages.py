from datetime import UTC, date, datetime

import pytest

from fleet_orders.pipeline.dates import ceil_days, floor_days, parse_timestamp
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


def test_pipeline_order():
    assert len(PIPELINE) == 8
    assert PIPELINE[0] is Stage.CONFIG_RECEIVED
    assert PIPELINE[-1] is Stage.DELIVERED
    assert [int(s) for s in PIPELINE] == list(range(8))


def test_stage_index():
    assert stage_index(Stage.CONFIG_RECEIVED) == 0
    assert stage_index("DELIVERED") == 7
    assert stage_index("at_upfitter") == 4
    assert stage_index(TerminalState.CANCELED) is None
    assert stage_index("NOT_A_STAGE") is None
    assert stage_index(None) is None


def test_is_before_and_is_reached():
    assert is_before(Stage.OEM_ALLOCATED, Stage.OEM_PRODUCTION)
    assert not is_before(Stage.DELIVERED, Stage.DELIVERED)
    assert not is_before(TerminalState.CANCELED, Stage.DELIVERED)

    assert is_reached(Stage.AT_UPFITTER, Stage.OEM_IN_TRANSIT)
    assert is_reached(Stage.AT_UPFITTER, Stage.AT_UPFITTER)
    assert not is_reached(Stage.AT_UPFITTER, Stage.UPFIT_IN_PROGRESS)
    # Canceled orders reach nothing
    assert not is_reached(TerminalState.CANCELED, Stage.CONFIG_RECEIVED)
    assert not is_reached(None, Stage.CONFIG_RECEIVED)


@pytest.mark.parametrize("raw", ["CANCELED", "cancelled", TerminalState.CANCELED])
def test_parse_status_canceled(raw):
    assert parse_status(raw) is TerminalState.CANCELED
    assert is_terminal(raw)


def test_parse_status_unknown():
    assert parse_status("SHIPPED") is None
    assert parse_status(42) is None
    assert parse_status(True) is None
    assert not is_terminal(Stage.DELIVERED)


def test_status_labels():
    assert get_status_label(Stage.READY_FOR_DELIVERY) == "Ready For Delivery"
    assert get_status_label("CANCELED") == "Canceled"
    assert get_status_label("mystery") == "mystery"
    assert Stage.UPFIT_IN_PROGRESS.code == "UPFIT_IN_PROGRESS"


class TestParseTimestamp:
    def test_iso_with_zulu(self) -> None:
        ts = parse_timestamp("2025-03-01T12:00:00Z")
        assert ts == datetime(2025, 3, 1, 12, tzinfo=UTC)

    def test_naive_is_utc(self) -> None:
        ts = parse_timestamp(datetime(2025, 3, 1))
        assert ts is not None
        assert ts.tzinfo is UTC

    def test_date_and_epoch_ms(self) -> None:
        assert parse_timestamp(date(2025, 1, 2)) == datetime(2025, 1, 2, tzinfo=UTC)
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)

    @pytest.mark.parametrize("raw", ["", "yesterday", "2025-13-45", None, [], float("nan")])
    def test_malformed_gives_none(self, raw) -> None:
        assert parse_timestamp(raw) is None


def test_day_rounding():
    start = datetime(2025, 1, 1, tzinfo=UTC)
    end = datetime(2025, 1, 3, 6, tzinfo=UTC)
    assert ceil_days(start, end) == 3
    assert floor_days(start, end) == 2
    assert ceil_days(end, start) == -2
