"""
Ownership of per-cycle view resources.

A ViewContext lives for exactly one loaded year. It owns the store and a
registry of ephemeral view handles (trend charts); closing the context
releases every handle, and the navigator closes a context before it is
replaced.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .models import DEFAULT_KEY, Reservoir, SeriesPoint
from .ranking import rank_reservoirs
from .store import ReservoirStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendKey:
    """Identifies one item series: station, item, sample depth and layer."""

    station_id: str
    item_name: str
    depth: str = DEFAULT_KEY
    layer: str = DEFAULT_KEY


@dataclass
class TrendView:
    """Default handle for an open trend: the series it shows."""

    key: TrendKey
    points: List[SeriesPoint] = field(default_factory=list)
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class ViewRegistry:
    """Open view handles by key; each handle is closed exactly once."""

    def __init__(self) -> None:
        self._handles: Dict[Any, Any] = {}

    def open(self, key: Any, handle: Any) -> Any:
        """Register a handle, releasing any handle already open under the key."""
        self.close(key)
        self._handles[key] = handle
        return handle

    def get(self, key: Any) -> Optional[Any]:
        return self._handles.get(key)

    def close(self, key: Any) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        self._release(key, handle)
        return True

    def release_all(self) -> int:
        handles = list(self._handles.items())
        self._handles.clear()
        for key, handle in handles:
            self._release(key, handle)
        return len(handles)

    @staticmethod
    def _release(key: Any, handle: Any) -> None:
        close = getattr(handle, "close", None)
        if not callable(close):
            return
        try:
            close()
        except Exception as e:
            logger.error(f"Error releasing view {key!r}: {e}", exc_info=True)

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._handles))


class ViewContext:
    """Everything derived from one load cycle."""

    def __init__(self, store: ReservoirStore):
        self.store = store
        self.views = ViewRegistry()
        self.ranked: Tuple[Reservoir, ...] = tuple(rank_reservoirs(store.reservoirs))
        self.closed = False

    @property
    def year(self) -> str:
        return self.store.year

    def close(self) -> None:
        if self.closed:
            return
        released = self.views.release_all()
        self.closed = True
        logger.debug(f"Closed view context for {self.year}, released {released} views")

    def __repr__(self) -> str:
        return f"ViewContext(year={self.year!r}, views={len(self.views)}, closed={self.closed})"
