"""
Data models for reservoir water-quality monitoring data.
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

DEFAULT_KEY = "default"


@dataclass(frozen=True)
class MeasurementRecord:
    """A single monitored item at one station on one date."""

    item_name: str
    item_value: Optional[float]
    item_unit: str = ""
    sample_depth: Optional[str] = None
    sample_layer: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str, str]:
        """(item, depth, layer) identity; missing depth/layer become ``"default"``."""
        return (
            self.item_name,
            self.sample_depth or DEFAULT_KEY,
            self.sample_layer or DEFAULT_KEY,
        )


@dataclass(frozen=True)
class StationSeries:
    """Dated measurement history of one monitoring station."""

    station_id: str
    by_date: Mapping[str, Tuple[MeasurementRecord, ...]] = field(default_factory=dict)
    coordinates: Optional[Tuple[float, float]] = None  # (lat, lon)

    @property
    def dates(self) -> Tuple[str, ...]:
        """Observation dates, oldest first."""
        return tuple(sorted(self.by_date))


@dataclass(frozen=True)
class Reservoir:
    """A reservoir and all stations loaded for one monitoring year."""

    name: str
    stations: Mapping[str, StationSeries] = field(default_factory=dict)
    graphic: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return any(series.by_date for series in self.stations.values())


@dataclass(frozen=True)
class UsageRecord:
    """Water supplied by a reservoir per use, in 10^4 tonnes."""

    agriculture: Optional[float] = None
    domestic: Optional[float] = None
    industrial: Optional[float] = None

    def _figures(self) -> Dict[str, float]:
        return {
            "agriculture": self.agriculture or 0.0,
            "domestic": self.domestic or 0.0,
            "industrial": self.industrial or 0.0,
        }

    @property
    def total(self) -> float:
        return sum(self._figures().values())

    @property
    def has_usage(self) -> bool:
        return any(value > 0 for value in self._figures().values())

    def shares(self) -> Dict[str, float]:
        """Percentage of the total per use, for positive uses only."""
        total = self.total
        if total <= 0:
            return {}
        return {
            use: round(value / total * 100, 1)
            for use, value in self._figures().items()
            if value > 0
        }


@dataclass(frozen=True)
class NavigationState:
    """The year on display and the reservoir selected within it, if any."""

    year: str
    reservoir: Optional[str] = None

    @property
    def is_detail(self) -> bool:
        return self.reservoir is not None


@dataclass(frozen=True)
class SeriesPoint:
    """One value of an item's chronological series."""

    date: str
    value: float
