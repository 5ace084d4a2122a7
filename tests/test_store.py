"""
Tests for reservoir document parsing and time-series queries.
"""

import pandas as pd

from wqmonitor.models import MeasurementRecord, SeriesPoint, UsageRecord
from wqmonitor.store import (
    ReservoirStore,
    history_summary,
    item_series,
    latest_date,
    latest_records,
    parse_reservoir_payload,
    series_to_pandas,
    station_centroid,
)

from conftest import CTSI, item, station


def sample_payload():
    return {
        "name": "A",
        "svg": "<svg/>",
        "1": station(
            {
                "2024/5/1": [
                    item("水溫", "25.1", "°C", depth="0.5", layer="表層"),
                    item("水溫", "22.0", "°C", depth="10", layer="底層"),
                    item("pH", "ND"),
                ],
                "2024-02-01": [
                    item("水溫", 18.4, "°C", depth="0.5", layer="表層"),
                    item("pH", 7.6),
                    item("pH", 7.7),
                ],
                "2023-12-01": [item("pH", None)],
            },
            lat="24.80",
            lon="121.20",
        ),
        "2": station({"2024-03-01": [item(CTSI, "41.2")]}, lat=24.9, lon=121.3),
        "3": "not a station",
    }


class TestParseReservoirPayload:
    def test_skips_non_station_keys(self):
        reservoir = parse_reservoir_payload("A", sample_payload())

        assert list(reservoir.stations) == ["1", "2"]
        assert reservoir.name == "A"
        assert reservoir.graphic is None

    def test_normalizes_dates_and_values(self):
        series = parse_reservoir_payload("A", sample_payload()).stations["1"]

        assert series.dates == ("2023-12-01", "2024-02-01", "2024-05-01")
        records = series.by_date["2024-05-01"]
        assert records[0] == MeasurementRecord("水溫", 25.1, "°C", "0.5", "表層")
        assert records[2].item_value is None
        assert series.coordinates == (24.80, 121.20)

    def test_duplicates_are_kept(self):
        series = parse_reservoir_payload("A", sample_payload()).stations["1"]

        ph = [r for r in series.by_date["2024-02-01"] if r.item_name == "pH"]
        assert [r.item_value for r in ph] == [7.6, 7.7]
        assert ph[0].key == ("pH", "default", "default")

    def test_invalid_payload_gives_empty_reservoir(self):
        reservoir = parse_reservoir_payload("A", ["unexpected"])

        assert dict(reservoir.stations) == {}
        assert not reservoir.has_data

    def test_skips_bad_dates_and_records(self):
        reservoir = parse_reservoir_payload(
            "A",
            {"1": station({"soon": [item("pH", 7)], "2024-01-01": [{"itemvalue": 1}, "x"]})},
        )

        series = reservoir.stations["1"]
        assert series.dates == ("2024-01-01",)
        assert series.by_date["2024-01-01"] == ()


class TestQueries:
    def test_latest(self):
        series = parse_reservoir_payload("A", sample_payload()).stations["1"]

        assert latest_date(series) == "2024-05-01"
        assert len(latest_records(series)) == 3

    def test_latest_without_data(self):
        series = parse_reservoir_payload("A", {"1": station({})}).stations["1"]

        assert latest_date(series) is None
        assert latest_records(series) == ()

    def test_item_series_by_depth_and_layer(self):
        reservoir = parse_reservoir_payload("A", sample_payload())

        surface = item_series(reservoir, "1", "水溫", "0.5", "表層")
        bottom = item_series(reservoir, "1", "水溫", "10", "底層")

        assert surface == [
            SeriesPoint("2024-02-01", 18.4),
            SeriesPoint("2024-05-01", 25.1),
        ]
        assert bottom == [SeriesPoint("2024-05-01", 22.0)]

    def test_item_series_skips_missing_values(self):
        reservoir = parse_reservoir_payload("A", sample_payload())

        # first matching record per date wins; 'ND' and None are left out
        assert item_series(reservoir, "1", "pH") == [SeriesPoint("2024-02-01", 7.6)]
        assert item_series(reservoir, "9", "pH") == []

    def test_series_to_pandas(self):
        df = series_to_pandas([SeriesPoint("2024-02-01", 18.4), SeriesPoint("2024-05-01", 25.1)])

        assert list(df.columns) == ["date", "value"]
        assert df["date"].iloc[1] == pd.Timestamp("2024-05-01")
        assert df["value"].tolist() == [18.4, 25.1]

    def test_history_summary(self):
        summary = history_summary(parse_reservoir_payload("A", sample_payload()))

        assert summary.count == 4
        assert summary.earliest == "2023-12-01"
        assert summary.latest == "2024-05-01"

    def test_history_summary_empty(self):
        summary = history_summary(parse_reservoir_payload("A", {}))

        assert (summary.count, summary.earliest, summary.latest) == (0, None, None)

    def test_station_centroid(self):
        lat, lon = station_centroid(parse_reservoir_payload("A", sample_payload()))

        assert abs(lat - 24.85) < 1e-9
        assert abs(lon - 121.25) < 1e-9
        assert station_centroid(parse_reservoir_payload("A", {})) is None


class TestReservoirStore:
    def test_lookup(self):
        a = parse_reservoir_payload("A", sample_payload())
        b = parse_reservoir_payload("B", {})
        store = ReservoirStore(
            "2024", [a, b], usage={"A": UsageRecord(1.0, 2.0, 3.0)}, generation=3
        )

        assert store.names == ["A", "B"]
        assert len(store) == 2
        assert "B" in store and "Z" not in store
        assert store.get("A") is a
        assert store.get(None) is None
        assert store.usage_for("A").total == 6.0
        assert store.usage_for("B") is None
        assert list(store) == [a, b]
