"""
Recency ranking and name search over a snapshot of reservoirs.
"""

from typing import List, Optional, Sequence

from .models import Reservoir
from .store import latest_date


def latest_observation(reservoir: Reservoir) -> Optional[str]:
    """Most recent observation date across all stations, or None."""
    dates = [latest_date(series) for series in reservoir.stations.values()]
    return max((d for d in dates if d is not None), default=None)


def rank_reservoirs(reservoirs: Sequence[Reservoir]) -> List[Reservoir]:
    """
    Order reservoirs by most recent observation, newest first.

    Reservoirs without any dated observation follow, in their original
    relative order. Ties keep their original relative order as well.
    """
    dated = []
    undated = []
    for reservoir in reservoirs:
        latest = latest_observation(reservoir)
        if latest is None:
            undated.append(reservoir)
        else:
            dated.append((latest, reservoir))
    # sort(reverse=True) is stable for equal keys
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [reservoir for _, reservoir in dated] + undated


def filter_reservoirs(ranked: Sequence[Reservoir], query: Optional[str]) -> List[Reservoir]:
    """
    Keep reservoirs whose name contains the query, ignoring case.

    An empty query returns every reservoir; order is never changed.
    """
    term = (query or "").strip().lower()
    if not term:
        return list(ranked)
    return [r for r in ranked if term in r.name.lower()]
