"""
Carlson trophic state index (CTSI) classification.

The bucket computed here is the only source of quality colouring: SVG
annotation and map markers both read it through station_buckets().
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional

from .models import MeasurementRecord, Reservoir, StationSeries
from .store import latest_records
from .utils import to_float

# Item names the published data uses for the CTSI, depending on year
INDEX_ITEM_NAMES = (
    "卡爾森指數",
    "卡爾森優養指數",
    "卡爾森優養指數(CTSI)",
)

LOW_THRESHOLD = 40.0
HIGH_THRESHOLD = 50.0


class Bucket(str, Enum):
    """Quality level of a CTSI value."""

    LOW = "low"
    MID = "mid"
    HIGH = "high"
    UNKNOWN = "unknown"


BUCKET_COLORS = {
    Bucket.LOW: "#3498db",
    Bucket.MID: "#27ae60",
    Bucket.HIGH: "#f39c12",
    Bucket.UNKNOWN: "#999",
}


def classify(value: Any) -> Bucket:
    """
    Map a CTSI value to its bucket.

    Examples:
        >>> classify(39.99)
        <Bucket.LOW: 'low'>
        >>> classify("50")
        <Bucket.MID: 'mid'>
        >>> classify(None)
        <Bucket.UNKNOWN: 'unknown'>
    """
    number = to_float(value)
    if number is None:
        return Bucket.UNKNOWN
    if number < LOW_THRESHOLD:
        return Bucket.LOW
    if number <= HIGH_THRESHOLD:
        return Bucket.MID
    return Bucket.HIGH


def find_index_record(
    records: Iterable[MeasurementRecord],
) -> Optional[MeasurementRecord]:
    for record in records:
        if record.item_name in INDEX_ITEM_NAMES:
            return record
    return None


def station_bucket(series: StationSeries) -> Bucket:
    """Bucket of the CTSI measured on the station's latest date."""
    record = find_index_record(latest_records(series))
    if record is None:
        return Bucket.UNKNOWN
    return classify(record.item_value)


def station_buckets(reservoir: Reservoir) -> Dict[str, Bucket]:
    return {
        station_id: station_bucket(series)
        for station_id, series in reservoir.stations.items()
    }
