"""
Concurrent loading of one monitoring year into a ReservoirStore.

A load cycle fetches the year's reservoir list, then every reservoir's
time series and layout graphic concurrently together with the usage
table of the reference year. Nothing is published until every fetch has
finished, and cycles superseded by a newer one are discarded on arrival.
"""

import asyncio
import dataclasses
import logging
from typing import Dict, Optional, Tuple

from .client import WaterQualityClient
from .config import MonitorConfig
from .exceptions import ReservoirListError, WQMonitorError
from .graphic import annotate_reservoir_graphic
from .models import Reservoir, UsageRecord
from .store import ReservoirStore, empty_reservoir, parse_reservoir_payload
from .usage import parse_usage_table

logger = logging.getLogger(__name__)


class AggregationLoader:
    """
    Builds a ReservoirStore per year from a WaterQualityClient.

    Every call to load() starts a new generation. Only the most recently
    started generation may publish its store; older ones return None when
    they finish, whatever order they finish in.
    """

    def __init__(
        self, client: WaterQualityClient, config: Optional[MonitorConfig] = None
    ):
        self.client = client
        self.config = config or getattr(client, "config", None) or MonitorConfig()
        self._generation = 0

    @property
    def generation(self) -> int:
        """Generation of the most recently started load cycle."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def load(self, year: str) -> Optional[ReservoirStore]:
        """
        Load every reservoir of a year.

        Args:
            year: Monitoring year to load

        Returns:
            The assembled ReservoirStore, or None if a newer cycle started
            while this one was in flight

        Raises:
            ReservoirListError: If the reservoir list cannot be fetched
        """
        self._generation += 1
        generation = self._generation
        logger.info(f"Load cycle {generation} started for {year}")

        try:
            names = await self.client.get_reservoir_list(year)
        except WQMonitorError as e:
            if not self.is_current(generation):
                logger.info(f"Load cycle {generation} superseded, dropping its failure")
                return None
            logger.error(f"Load cycle {generation}: reservoir list unavailable: {e}")
            raise ReservoirListError(year, e) from e

        results = await asyncio.gather(
            self._load_usage(),
            *(self._load_reservoir(year, name) for name in names),
        )

        if not self.is_current(generation):
            logger.info(
                f"Load cycle {generation} for {year} superseded by "
                f"{self._generation}, discarding results"
            )
            return None

        usage, usage_loaded = results[0]
        reservoir_results = results[1:]
        reservoirs = [reservoir for reservoir, _ in reservoir_results]
        failed = [reservoir.name for reservoir, ok in reservoir_results if not ok]

        store = ReservoirStore(
            year=year,
            reservoirs=reservoirs,
            usage=usage,
            generation=generation,
            failed=failed,
            usage_loaded=usage_loaded,
        )
        logger.info(
            f"Load cycle {generation} complete: {len(reservoirs)} reservoirs, "
            f"{len(failed)} without data, usage for {len(usage)}"
        )
        return store

    async def _load_usage(self) -> Tuple[Dict[str, UsageRecord], bool]:
        year = self.config.reference_year
        try:
            text = await self.client.get_usage_table(year)
            return parse_usage_table(text), True
        except WQMonitorError as e:
            logger.warning(f"Water usage data not available for {year}: {e}")
            return {}, False

    async def _load_reservoir(self, year: str, name: str) -> Tuple[Reservoir, bool]:
        """Fetch one reservoir's data and graphic; the bool is False if data failed."""
        data, graphic = await asyncio.gather(
            self.client.get_reservoir_data(year, name),
            self.client.get_graphic(name),
            return_exceptions=True,
        )

        if isinstance(graphic, WQMonitorError):
            logger.debug(f"Graphic not loaded for {name}: {graphic}")
            graphic = None
        elif isinstance(graphic, BaseException):
            raise graphic

        if isinstance(data, WQMonitorError):
            logger.warning(f"Error loading {name} ({year}): {data}")
            return empty_reservoir(name, graphic), False
        elif isinstance(data, BaseException):
            raise data

        reservoir = parse_reservoir_payload(name, data)
        if graphic is not None:
            graphic = annotate_reservoir_graphic(
                graphic, reservoir, self.config.graphic_prefix
            )
            reservoir = dataclasses.replace(reservoir, graphic=graphic)
        return reservoir, True
