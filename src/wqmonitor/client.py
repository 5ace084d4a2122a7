"""
Async client for the published reservoir monitoring files.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import MonitorConfig
from .exceptions import (
    WQConnectionError,
    WQNotFoundError,
    WQResponseError,
)

logger = logging.getLogger(__name__)


class WaterQualityClient:
    """
    Client for the static data files behind the monitoring site.

    Layout of the published files:

    - ``data/{year}/list.json``: reservoir names for a year
    - ``data/{year}/{reservoir}.json``: station time series of a reservoir
    - ``data/{year}.csv``: water-usage table
    - ``images/{reservoir}.svg``: station layout graphic
    """

    def __init__(self, config: Optional[MonitorConfig] = None):
        self.config = config or MonitorConfig()
        self.timeout = self.config.timeout
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={"User-Agent": self.config.user_agent},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "WaterQualityClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _make_request(self, path: str) -> httpx.Response:
        """GET a file relative to the base URL with error handling."""
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            return response

        except httpx.TimeoutException as e:
            raise WQConnectionError(
                f"Request timeout after {self.timeout}s", details=path
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise WQNotFoundError(f"Resource not found: {path}") from e
            elif status >= 500:
                raise WQConnectionError(
                    "Data host temporarily unavailable", details=f"HTTP {status}"
                ) from e
            else:
                raise WQConnectionError(f"HTTP error {status}", details=path) from e
        except httpx.RequestError as e:
            raise WQConnectionError(f"Network error: {e}", details=path) from e

    async def _get_json(self, path: str) -> Any:
        response = await self._make_request(path)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise WQResponseError(f"Invalid JSON response from {path}", details=str(e)) from e

    async def get_reservoir_list(self, year: str) -> List[str]:
        """
        Get the reservoir names published for a year.

        Args:
            year: Monitoring year, e.g. '2024'

        Returns:
            Reservoir names in published order
        """
        data = await self._get_json(f"data/{quote(year)}/list.json")
        if not isinstance(data, list):
            raise WQResponseError(
                f"Reservoir list for {year} is {type(data).__name__}, expected list"
            )
        names = []
        for entry in data:
            if entry is None:
                continue
            name = str(entry).strip()
            if name and name not in names:
                names.append(name)
        return names

    async def get_reservoir_data(self, year: str, name: str) -> Dict[str, Any]:
        """
        Get the station time-series document of one reservoir.

        Args:
            year: Monitoring year
            name: Reservoir name as listed for the year

        Returns:
            Decoded document mapping station id to station data
        """
        data = await self._get_json(f"data/{quote(year)}/{quote(name, safe='')}.json")
        if not isinstance(data, dict):
            raise WQResponseError(
                f"Data for {name} ({year}) is {type(data).__name__}, expected object"
            )
        return data

    async def get_usage_table(self, year: str) -> str:
        """Get the water-usage CSV text of a year."""
        response = await self._make_request(f"data/{quote(year)}.csv")
        return response.text

    async def get_graphic(self, name: str) -> Optional[str]:
        """
        Get the layout SVG of a reservoir.

        Returns:
            SVG text, or None when the reservoir has no graphic
        """
        try:
            response = await self._make_request(f"images/{quote(name, safe='')}.svg")
        except WQNotFoundError:
            logger.debug(f"No graphic published for {name}")
            return None
        return response.text

