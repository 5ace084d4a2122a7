"""
Tests for CTSI classification.
"""

import math

import pytest

from wqmonitor.classify import (
    BUCKET_COLORS,
    Bucket,
    classify,
    find_index_record,
    station_bucket,
    station_buckets,
)
from wqmonitor.models import MeasurementRecord
from wqmonitor.store import parse_reservoir_payload

from conftest import CTSI, item, station


class TestClassify:
    """Test bucket boundaries."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (39.99, Bucket.LOW),
            (40, Bucket.MID),
            (50, Bucket.MID),
            (50.01, Bucket.HIGH),
            (0, Bucket.LOW),
            ("45.5", Bucket.MID),
            (" 62 ", Bucket.HIGH),
        ],
    )
    def test_boundaries(self, value, expected):
        assert classify(value) is expected

    @pytest.mark.parametrize("value", [None, math.nan, "", "ND", "<5", object(), True])
    def test_unknown(self, value):
        """Absent or unparseable values never raise."""
        assert classify(value) is Bucket.UNKNOWN

    def test_every_bucket_has_a_color(self):
        assert set(BUCKET_COLORS) == set(Bucket)


class TestStationBuckets:
    """Test classification of a station's latest CTSI."""

    def test_find_index_record_accepts_all_item_names(self):
        for name in ("卡爾森指數", "卡爾森優養指數", "卡爾森優養指數(CTSI)"):
            records = [
                MeasurementRecord("pH", 7.5),
                MeasurementRecord(name, 42.0),
            ]
            assert find_index_record(records).item_value == 42.0

    def test_uses_latest_date_only(self):
        reservoir = parse_reservoir_payload(
            "A",
            {
                "1": station(
                    {
                        "2024-01-01": [item(CTSI, 60)],
                        "2024-03-01": [item(CTSI, 30)],
                    }
                ),
                "2": station({"2024-03-01": [item("pH", 7)]}),
                "3": station({}),
            },
        )

        buckets = station_buckets(reservoir)

        assert buckets == {"1": Bucket.LOW, "2": Bucket.UNKNOWN, "3": Bucket.UNKNOWN}
        assert station_bucket(reservoir.stations["1"]) is Bucket.LOW
