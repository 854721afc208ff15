import csv
import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from fleet_orders.analytics import CreditForecaster, FleetAggregator, render_fleet_report
from fleet_orders.config.loader import load_pipeline_config
from fleet_orders.generators import DemoOrderGenerator
from fleet_orders.timeline import build_timeline
from fleet_orders.writers import ReportWriter

AS_OF = datetime(2025, 6, 30, tzinfo=UTC)


@pytest.fixture(scope="module")
def artifacts():
    orders = DemoOrderGenerator(seed=11).generate(AS_OF, count=40)
    timelines = [build_timeline(o) for o in orders]
    report = FleetAggregator().aggregate(timelines, AS_OF)
    forecast = CreditForecaster().forecast(timelines, AS_OF, aging=report.aging)
    return timelines, report, forecast


def read_rows(path: Path) -> list[dict[str, str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


def test_writes_all_tables(tmp_path, artifacts):
    timelines, report, forecast = artifacts
    writer = ReportWriter(str(tmp_path / "report"))

    timeline_path = writer.write_timelines(timelines)
    table_paths = writer.write_fleet_report(report)
    forecast_path = writer.write_forecast(forecast)

    assert timeline_path is not None
    assert len(read_rows(timeline_path)) == len(timelines) * 8
    assert {p.name for p in table_paths} == {
        "aging_buckets.csv",
        "sla_compliance.csv",
        "stage_delays.csv",
        "order_cascades.csv",
        "stage_durations.csv",
        "monthly_volume.csv",
    }
    volume_rows = read_rows(tmp_path / "report" / "monthly_volume.csv")
    assert sum(int(r["orders"]) for r in volume_rows) == len(timelines)
    aging_rows = read_rows(tmp_path / "report" / "aging_buckets.csv")
    assert [r["bucket"] for r in aging_rows] == ["0-30", "31-60", "61-90", "90+"]
    assert forecast_path is not None
    assert len(read_rows(forecast_path)) == 6


def test_no_adjustments_writes_nothing(tmp_path):
    writer = ReportWriter(str(tmp_path))
    assert writer.write_clamp_adjustments([]) is None
    assert not (tmp_path / "clamp_adjustments.csv").exists()


def test_write_table_names_file_after_table(tmp_path):
    path = ReportWriter(str(tmp_path / "out")).write_table("custom", [{"a": 1, "b": None}])
    assert path == tmp_path / "out" / "custom.csv"
    assert read_rows(path) == [{"a": "1", "b": ""}]


def test_rendered_report_sections(artifacts):
    _, report, forecast = artifacts
    text = render_fleet_report(report, forecast)
    assert "FLEET ORDER REPORT" in text
    assert "Receivables Aging" in text
    assert "Operations Timeline" in text
    assert "Credit Utilization Forecast" in text
    assert "2025-06-30" in text


def test_config_loader(tmp_path):
    config = load_pipeline_config()
    assert config["aging"]["window_days"] == 90
    assert config["forecast"]["horizon_periods"] == 6

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(TypeError):
        load_pipeline_config(str(bad))


def test_config_override_keeps_other_defaults(tmp_path):
    override = tmp_path / "override.json"
    override.write_text(json.dumps({"aging": {"window_days": 60}}))
    config = load_pipeline_config(str(override))
    assert config["aging"]["window_days"] == 60
    assert config["aging"]["bucket_edges"] == [30, 60, 90]
    assert config["forecast"]["horizon_periods"] == 6
