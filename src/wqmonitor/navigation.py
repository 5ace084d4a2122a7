"""
Navigation state: which year is shown and which reservoir is selected.

Two input channels drive the state: explicit actions (select a reservoir,
close it, pick a year) and changes of the URL fragment made outside the
engine (address bar edits, back/forward). The Navigator reconciles both
into one NavigationState, is the only writer of the fragment, and treats
applying the current state again as a no-op, so the echo of its own
fragment write never triggers a second reload or selection. A state for
the year whose load is still in flight joins that load.

Fragment format: ``<year>`` or ``<year>/<url-encoded reservoir name>``.
"""

import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional
from urllib.parse import quote, unquote

from .config import MonitorConfig
from .exceptions import ReservoirListError
from .loader import AggregationLoader
from .models import DEFAULT_KEY, NavigationState, Reservoir
from .ranking import filter_reservoirs
from .store import ReservoirStore, item_series
from .views import TrendKey, TrendView, ViewContext

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves as is
_FRAGMENT_SAFE = "-_.!~*'()"


def format_fragment(state: NavigationState) -> str:
    """Serialize a state to a URL fragment (without ``#``)."""
    if state.reservoir:
        return f"{state.year}/{quote(state.reservoir, safe=_FRAGMENT_SAFE)}"
    return state.year


def _strip_hash(fragment: Optional[str]) -> str:
    fragment = fragment or ""
    return fragment[1:] if fragment.startswith("#") else fragment


def parse_fragment(
    fragment: Optional[str], current_year: str, supported_years: Iterable[str]
) -> NavigationState:
    """
    Parse a URL fragment into a NavigationState.

    Unsupported or malformed year tokens fall back to ``current_year``;
    an empty fragment means ``current_year`` with no selection.

    Examples:
        >>> parse_fragment("#2024/Reservoir%20X", "2025", ["2024", "2025"])
        NavigationState(year='2024', reservoir='Reservoir X')
        >>> parse_fragment("1999", "2025", ["2024", "2025"])
        NavigationState(year='2025', reservoir=None)
    """
    text = _strip_hash(fragment)
    if not text:
        return NavigationState(year=current_year)

    parts = text.split("/", 1)
    year = parts[0] if parts[0] in set(supported_years) else current_year
    reservoir = unquote(parts[1]) if len(parts) > 1 and parts[1] else None
    return NavigationState(year=year, reservoir=reservoir)


class NavigationMode(str, Enum):
    IDLE = "idle"
    DETAIL = "detail"


class Navigator:
    """
    State machine owning the current year and the selected reservoir.

    Args:
        loader: Loader used to (re)load a year
        config: Supported years and default year
        on_fragment: Called with the new fragment whenever the state changes
        on_select: Called with the selected reservoir, or None when cleared
        on_error: Called with the exception when a load cycle fails
        trend_factory: Builds a view handle for a trend; defaults to TrendView
    """

    def __init__(
        self,
        loader: AggregationLoader,
        config: Optional[MonitorConfig] = None,
        on_fragment: Optional[Callable[[str], Any]] = None,
        on_select: Optional[Callable[[Optional[Reservoir]], Any]] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
        trend_factory: Optional[Callable[..., Any]] = None,
    ):
        self.loader = loader
        self.config = config or loader.config
        self.on_fragment = on_fragment
        self.on_select = on_select
        self.on_error = on_error
        self.trend_factory = trend_factory or TrendView

        self.state = NavigationState(year=self.config.default_year)
        self.context: Optional[ViewContext] = None
        self.selected: Optional[Reservoir] = None
        self.last_error: Optional[Exception] = None
        # What the URL shows right now, as far as the navigator knows
        self._fragment: Optional[str] = None
        # Year of the load in flight and the reservoir to select once it lands
        self._pending_year: Optional[str] = None
        self._pending_reservoir: Optional[str] = None
        self._requests = 0

    @property
    def mode(self) -> NavigationMode:
        return NavigationMode.DETAIL if self.selected is not None else NavigationMode.IDLE

    @property
    def store(self) -> Optional[ReservoirStore]:
        return self.context.store if self.context else None

    @property
    def fragment(self) -> Optional[str]:
        return self._fragment

    @property
    def loading_year(self) -> Optional[str]:
        """Year whose load cycle is in flight, if any."""
        return self._pending_year

    def _is_loaded(self, year: str) -> bool:
        return self.context is not None and self.context.year == year

    def _is_loading(self, year: str) -> bool:
        return self._pending_year is not None and self._pending_year == year

    def _write(self, state: NavigationState) -> None:
        self.state = state
        fragment = format_fragment(state)
        if fragment == self._fragment:
            return
        self._fragment = fragment
        logger.debug(f"Writing fragment {fragment!r}")
        if self.on_fragment:
            self.on_fragment(fragment)

    def _show(self, reservoir: Optional[Reservoir]) -> None:
        if reservoir is self.selected:
            return
        if self.context:
            self.context.views.release_all()
        self.selected = reservoir
        if self.on_select:
            self.on_select(reservoir)

    def select_entity(self, name: Optional[str]) -> Optional[Reservoir]:
        """
        Select a reservoir of the loaded year by name.

        A name that is not in the loaded set clears the selection instead.

        Returns:
            The selected Reservoir, or None
        """
        if name is None:
            self.clear_selection()
            return None

        if self._is_loading(self.state.year):
            logger.debug(f"Selecting {name!r} once {self.state.year} has loaded")
            self._pending_reservoir = name
            return None
        if not self._is_loaded(self.state.year):
            logger.info(f"Ignoring selection of {name!r}, {self.state.year} is not loaded")
            return None

        reservoir = self.store.get(name)
        if reservoir is None:
            logger.info(f"Reservoir {name!r} not found in {self.state.year}")
            self.clear_selection()
            return None

        self._show(reservoir)
        self._write(NavigationState(year=self.state.year, reservoir=name))
        return reservoir

    def clear_selection(self) -> None:
        self._pending_reservoir = None
        self._show(None)
        self._write(NavigationState(year=self.state.year))

    async def set_year(self, year: str) -> bool:
        """
        Show another year; clears the selection and reloads.

        Unsupported years, the year already shown and the year already
        loading are ignored.

        Returns:
            True if a reload happened and its result is now shown
        """
        if not self.config.is_supported_year(year):
            logger.warning(f"Ignoring unsupported year {year!r}")
            return False
        if self._is_loading(year):
            return False
        if year == self.state.year and self._is_loaded(year):
            return False
        return await self._change_year(year, write=True)

    async def _change_year(
        self, year: str, write: bool, reservoir: Optional[str] = None
    ) -> bool:
        """
        Load a year and select ``reservoir`` in it.

        The selection requested last while the load is in flight wins. Only
        the most recent request installs its store.
        """
        self._show(None)
        if write:
            self._write(NavigationState(year=year))
        else:
            self.state = NavigationState(year=year)

        self._requests += 1
        request = self._requests
        self._pending_year = year
        self._pending_reservoir = reservoir

        try:
            store = await self.loader.load(year)
        except ReservoirListError as e:
            self.last_error = e
            if self.on_error:
                self.on_error(e)
            self._pending_reservoir = None
            if self.context is not None:
                # keep showing the previous year
                self._write(NavigationState(year=self.context.year))
            return False
        finally:
            if request == self._requests:
                self._pending_year = None

        if store is None:
            return False

        if self.context is not None:
            self.context.close()
        self.context = ViewContext(store)
        self.last_error = None

        name, self._pending_reservoir = self._pending_reservoir, None
        if name is None:
            self.clear_selection()
        else:
            self.select_entity(name)
        return True

    async def apply(self, state: NavigationState) -> bool:
        """
        Bring the engine to a NavigationState.

        Applying the state that is already shown does nothing. A different
        year is loaded first and the reservoir is then resolved by name in
        the fresh set. A state for the year that is already loading joins
        that load instead of starting another one.

        Returns:
            True if anything changed
        """
        year = state.year if self.config.is_supported_year(state.year) else self.state.year
        target = NavigationState(year=year, reservoir=state.reservoir)

        if target == self.state and self._is_loaded(year):
            if self._fragment != format_fragment(target):
                self._write(target)
            return False

        if self._is_loading(year):
            if self._pending_reservoir == target.reservoir:
                logger.debug(f"Already loading {format_fragment(target)!r}")
                return False
            self._pending_reservoir = target.reservoir
            return True

        if not self._is_loaded(year) or year != self.state.year:
            if await self._change_year(year, write=False, reservoir=target.reservoir):
                return True
            if self._pending_year is None and self._fragment != format_fragment(self.state):
                self._write(self.state)
            return False

        if target.reservoir is None:
            self.clear_selection()
        else:
            self.select_entity(target.reservoir)
        return True

    async def handle_fragment(self, fragment: Optional[str]) -> bool:
        """
        React to a URL fragment change made outside the navigator.

        The echo of the navigator's own last write parses to the current
        state and is ignored, also while that state's year is still loading.
        """
        text = _strip_hash(fragment)
        candidate = parse_fragment(text, self.state.year, self.config.supported_years)
        if candidate == self.state and (
            self._is_loaded(candidate.year) or self._is_loading(candidate.year)
        ):
            if text == self._fragment:
                logger.debug(f"Ignoring echo of own fragment {text!r}")
            return False
        self._fragment = text
        return await self.apply(candidate)

    async def start(self, fragment: Optional[str] = None) -> bool:
        """Initial load from a fragment, or the default year without one."""
        text = _strip_hash(fragment)
        self._fragment = text or None
        state = parse_fragment(text, self.config.default_year, self.config.supported_years)
        return await self.apply(state)

    def visible(self, query: Optional[str] = "") -> List[Reservoir]:
        """Ranked reservoirs of the loaded year matching the search query."""
        if self.context is None:
            return []
        return filter_reservoirs(self.context.ranked, query)

    def toggle_trend(
        self,
        station_id: str,
        item_name: str,
        depth: str = DEFAULT_KEY,
        layer: str = DEFAULT_KEY,
    ) -> Optional[Any]:
        """
        Open the trend of one item of the selected reservoir, or close it if open.

        Returns:
            The new view handle, or None if it was closed or has no data
        """
        if self.selected is None or self.context is None:
            return None
        key = TrendKey(station_id, item_name, depth or DEFAULT_KEY, layer or DEFAULT_KEY)
        if self.context.views.close(key):
            return None
        points = item_series(self.selected, station_id, item_name, key.depth, key.layer)
        if not points:
            return None
        return self.context.views.open(key, self.trend_factory(key, points))

    def close_trend(self, key: TrendKey) -> bool:
        if self.context is None:
            return False
        return self.context.views.close(key)

    def close(self) -> None:
        """Release every view of the current context."""
        if self.context is not None:
            self.context.close()
