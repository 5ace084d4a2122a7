"""
In-memory store of reservoir time series for one load cycle.

A ReservoirStore is built once per load cycle from fully assembled
reservoirs and is never modified afterwards; a year change replaces it
wholesale.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .models import (
    DEFAULT_KEY,
    MeasurementRecord,
    Reservoir,
    SeriesPoint,
    StationSeries,
    UsageRecord,
)
from .utils import blank_to_none, normalize_date, to_float

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)

# Top-level keys of a reservoir document that are not station ids
NON_STATION_KEYS = frozenset({"name", "svg"})


def _parse_record(item: Any) -> Optional[MeasurementRecord]:
    if not isinstance(item, dict):
        return None
    item_name = blank_to_none(item.get("itemname"))
    if item_name is None:
        return None
    return MeasurementRecord(
        item_name=item_name,
        item_value=to_float(item.get("itemvalue")),
        item_unit=str(item.get("itemunit") or ""),
        sample_depth=blank_to_none(item.get("sampledepth")),
        sample_layer=blank_to_none(item.get("samplelayer")),
    )


def _parse_station(station_id: str, station_data: Dict[str, Any]) -> StationSeries:
    lat = to_float(station_data.get("twd97lat"))
    lon = to_float(station_data.get("twd97lon"))
    coordinates = (lat, lon) if lat is not None and lon is not None else None

    raw_dates = station_data.get("data")
    by_date: Dict[str, List[MeasurementRecord]] = {}
    if isinstance(raw_dates, dict):
        for raw_date, items in raw_dates.items():
            date_key = normalize_date(raw_date)
            if date_key is None:
                logger.warning(
                    f"Station {station_id}: skipping unparseable date {raw_date!r}"
                )
                continue
            if not isinstance(items, list):
                continue
            records = by_date.setdefault(date_key, [])
            for item in items:
                record = _parse_record(item)
                if record is not None:
                    records.append(record)
    elif raw_dates is not None:
        logger.warning(f"Station {station_id}: 'data' is not a mapping, ignoring")

    return StationSeries(
        station_id=station_id,
        by_date=MappingProxyType(
            {date_key: tuple(records) for date_key, records in by_date.items()}
        ),
        coordinates=coordinates,
    )


def parse_reservoir_payload(
    name: str, payload: Any, graphic: Optional[str] = None
) -> Reservoir:
    """
    Build a Reservoir from its published JSON document.

    Malformed stations and records are skipped, never raised; a payload
    that is not a mapping yields a reservoir without stations.

    Args:
        name: Reservoir name
        payload: Decoded document mapping station id to station data
        graphic: Optional (already annotated) SVG markup

    Returns:
        Reservoir
    """
    stations: Dict[str, StationSeries] = {}
    if isinstance(payload, dict):
        for station_id, station_data in payload.items():
            station_id = str(station_id)
            if station_id in NON_STATION_KEYS:
                continue
            if not isinstance(station_data, dict):
                logger.warning(f"{name}: station {station_id} is not a mapping")
                continue
            stations[station_id] = _parse_station(station_id, station_data)
    else:
        logger.warning(
            f"{name}: expected a mapping of stations, got {type(payload).__name__}"
        )
    return Reservoir(name=name, stations=MappingProxyType(stations), graphic=graphic)


def empty_reservoir(name: str, graphic: Optional[str] = None) -> Reservoir:
    return Reservoir(name=name, stations=MappingProxyType({}), graphic=graphic)


def latest_date(series: StationSeries) -> Optional[str]:
    """Most recent observation date of a station, or None without data."""
    return max(series.by_date, default=None)


def latest_records(series: StationSeries) -> Tuple[MeasurementRecord, ...]:
    date_key = latest_date(series)
    if date_key is None:
        return ()
    return tuple(series.by_date[date_key])


def item_series(
    reservoir: Reservoir,
    station_id: str,
    item_name: str,
    depth: str = DEFAULT_KEY,
    layer: str = DEFAULT_KEY,
) -> List[SeriesPoint]:
    """
    Chronological values of one item at one station, depth and layer.

    On each date the first record with a matching key is used; dates where
    that record has no value are left out.

    Args:
        reservoir: Reservoir holding the station
        station_id: Station id
        item_name: Monitored item name
        depth: Sample depth, ``"default"`` when unspecified
        layer: Sample layer, ``"default"`` when unspecified

    Returns:
        List of SeriesPoint ordered by date, oldest first
    """
    series = reservoir.stations.get(station_id)
    if series is None:
        return []

    key = (item_name, depth or DEFAULT_KEY, layer or DEFAULT_KEY)
    points = []
    for date_key in series.dates:
        record = next((r for r in series.by_date[date_key] if r.key == key), None)
        if record is not None and record.item_value is not None:
            points.append(SeriesPoint(date=date_key, value=record.item_value))
    return points


def series_to_pandas(points: Sequence[SeriesPoint]) -> "pd.DataFrame":
    """Convert an item series to a DataFrame with ``date`` and ``value`` columns."""
    import pandas as pd

    return pd.DataFrame(
        {
            "date": pd.to_datetime([p.date for p in points]),
            "value": pd.Series([p.value for p in points], dtype="float64"),
        }
    )


@dataclass(frozen=True)
class HistorySummary:
    """Observation dates across all stations of a reservoir."""

    count: int
    earliest: Optional[str]
    latest: Optional[str]


def history_summary(reservoir: Reservoir) -> HistorySummary:
    dates = sorted(
        {d for series in reservoir.stations.values() for d in series.by_date}
    )
    if not dates:
        return HistorySummary(count=0, earliest=None, latest=None)
    return HistorySummary(count=len(dates), earliest=dates[0], latest=dates[-1])


def station_centroid(reservoir: Reservoir) -> Optional[Tuple[float, float]]:
    """Mean (lat, lon) of the stations that have coordinates."""
    coords = [
        s.coordinates for s in reservoir.stations.values() if s.coordinates is not None
    ]
    if not coords:
        return None
    return (
        sum(lat for lat, _ in coords) / len(coords),
        sum(lon for _, lon in coords) / len(coords),
    )


class ReservoirStore:
    """
    Snapshot of the reservoirs and usage figures of one load cycle.

    Reservoirs keep the order of the year's reservoir list. Reservoirs whose
    data could not be fetched are present with no stations.
    """

    def __init__(
        self,
        year: str,
        reservoirs: Iterable[Reservoir],
        usage: Optional[Mapping[str, UsageRecord]] = None,
        generation: int = 0,
        failed: Iterable[str] = (),
        usage_loaded: bool = False,
    ):
        self.year = year
        self.generation = generation
        self._reservoirs: Tuple[Reservoir, ...] = tuple(reservoirs)
        self._by_name = {r.name: r for r in self._reservoirs}
        self._usage: Mapping[str, UsageRecord] = MappingProxyType(dict(usage or {}))
        self.failed: Tuple[str, ...] = tuple(failed)
        self.usage_loaded = usage_loaded

    @property
    def reservoirs(self) -> Tuple[Reservoir, ...]:
        return self._reservoirs

    @property
    def names(self) -> List[str]:
        return [r.name for r in self._reservoirs]

    @property
    def usage(self) -> Mapping[str, UsageRecord]:
        return self._usage

    def get(self, name: Optional[str]) -> Optional[Reservoir]:
        if name is None:
            return None
        return self._by_name.get(name)

    def usage_for(self, name: str) -> Optional[UsageRecord]:
        return self._usage.get(name)

    def __len__(self) -> int:
        return len(self._reservoirs)

    def __iter__(self) -> Iterator[Reservoir]:
        return iter(self._reservoirs)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return (
            f"ReservoirStore(year={self.year!r}, generation={self.generation}, "
            f"reservoirs={len(self._reservoirs)}, failed={len(self.failed)})"
        )
