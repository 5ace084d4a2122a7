"""
Python client for published reservoir water-quality monitoring data.

Load a monitoring year, rank reservoirs by recency, classify CTSI values
and keep the selected reservoir in sync with a URL fragment.
"""

try:
    from importlib import metadata

    __version__ = metadata.version(__name__)
except Exception:
    __version__ = "unknown"

from .classify import (
    BUCKET_COLORS,
    INDEX_ITEM_NAMES,
    Bucket,
    classify,
    find_index_record,
    station_bucket,
    station_buckets,
)
from .client import WaterQualityClient
from .config import MonitorConfig
from .exceptions import (
    ReservoirListError,
    WQConfigError,
    WQConnectionError,
    WQMonitorError,
    WQNotFoundError,
    WQResponseError,
)
from .graphic import annotate_graphic, annotate_reservoir_graphic, station_ids_in_graphic
from .loader import AggregationLoader
from .models import (
    MeasurementRecord,
    NavigationState,
    Reservoir,
    SeriesPoint,
    StationSeries,
    UsageRecord,
)
from .navigation import NavigationMode, Navigator, format_fragment, parse_fragment
from .ranking import filter_reservoirs, latest_observation, rank_reservoirs
from .store import (
    HistorySummary,
    ReservoirStore,
    history_summary,
    item_series,
    latest_date,
    latest_records,
    parse_reservoir_payload,
    series_to_pandas,
    station_centroid,
)
from .usage import parse_usage_table, usage_to_pandas
from .views import TrendKey, TrendView, ViewContext, ViewRegistry

__all__ = [
    # Client and loading
    "WaterQualityClient",
    "MonitorConfig",
    "AggregationLoader",
    "ReservoirStore",
    # Models
    "MeasurementRecord",
    "StationSeries",
    "Reservoir",
    "UsageRecord",
    "NavigationState",
    "SeriesPoint",
    "HistorySummary",
    # Classification
    "Bucket",
    "BUCKET_COLORS",
    "INDEX_ITEM_NAMES",
    "classify",
    "find_index_record",
    "station_bucket",
    "station_buckets",
    # Parsing and queries
    "parse_reservoir_payload",
    "parse_usage_table",
    "usage_to_pandas",
    "latest_date",
    "latest_records",
    "item_series",
    "series_to_pandas",
    "history_summary",
    "station_centroid",
    # Graphics
    "annotate_graphic",
    "annotate_reservoir_graphic",
    "station_ids_in_graphic",
    # Ranking
    "latest_observation",
    "rank_reservoirs",
    "filter_reservoirs",
    # Navigation
    "Navigator",
    "NavigationMode",
    "format_fragment",
    "parse_fragment",
    "TrendKey",
    "TrendView",
    "ViewContext",
    "ViewRegistry",
    # Exceptions
    "WQMonitorError",
    "WQConnectionError",
    "WQNotFoundError",
    "WQResponseError",
    "ReservoirListError",
    "WQConfigError",
]
