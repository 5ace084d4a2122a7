"""
Shared fixtures: an in-memory stand-in for WaterQualityClient.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from wqmonitor.config import MonitorConfig
from wqmonitor.exceptions import WQConnectionError, WQNotFoundError

CTSI = "卡爾森指數"

USAGE_CSV = (
    "name,code,agriculture,domestic,industrial\n"
    'A,1,"1,234",500,-00\n'
    "B,2,0,-00,-00\n"
)

SVG_A = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">'
    '<rect id="outline" width="100" height="100"/>'
    '<circle id="Dam_S1" cx="10" cy="10" r="4"/>'
    '<circle id="Dam_S2" cx="50" cy="50" r="4"/>'
    "</svg>"
)


def item(name: str, value: Any, unit: str = "", depth=None, layer=None) -> Dict[str, Any]:
    return {
        "itemname": name,
        "itemvalue": value,
        "itemunit": unit,
        "sampledepth": depth,
        "samplelayer": layer,
    }


def station(by_date: Dict[str, List[Dict[str, Any]]], lat=None, lon=None) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"data": by_date}
    if lat is not None:
        doc["twd97lat"] = lat
    if lon is not None:
        doc["twd97lon"] = lon
    return doc


def reservoir_doc(latest: Optional[str], ctsi: Any = 35.0) -> Dict[str, Any]:
    """One-station reservoir document whose latest observation is ``latest``."""
    if latest is None:
        return {}
    return {
        "1": station(
            {
                "2024-01-15": [item(CTSI, 45.0), item("pH", "7.9")],
                latest: [item(CTSI, ctsi), item("pH", "8.1")],
            },
            lat="24.81",
            lon="121.24",
        )
    }


class FakeClient:
    """Serves reservoir documents from memory; optional gates hold a year's list fetch."""

    def __init__(
        self,
        years: Dict[str, Dict[str, Any]],
        usage: Any = USAGE_CSV,
        graphics: Optional[Dict[str, Any]] = None,
        config: Optional[MonitorConfig] = None,
    ):
        self.years = years
        self.usage = usage
        self.graphics = graphics or {}
        self.config = config or MonitorConfig(default_year="2024")
        self.gates: Dict[str, asyncio.Event] = {}
        self.list_calls: List[str] = []
        self.data_calls: List[str] = []
        self.usage_calls: List[str] = []

    async def get_reservoir_list(self, year: str) -> List[str]:
        self.list_calls.append(year)
        gate = self.gates.get(year)
        if gate is not None:
            await gate.wait()
        if year not in self.years:
            raise WQNotFoundError(f"Resource not found: data/{year}/list.json")
        return list(self.years[year])

    async def get_reservoir_data(self, year: str, name: str) -> Dict[str, Any]:
        self.data_calls.append(name)
        await asyncio.sleep(0)
        value = self.years[year][name]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_usage_table(self, year: str) -> str:
        self.usage_calls.append(year)
        if isinstance(self.usage, Exception):
            raise self.usage
        return self.usage

    async def get_graphic(self, name: str) -> Optional[str]:
        value = self.graphics.get(name)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def config():
    return MonitorConfig(default_year="2024")


@pytest.fixture
def years():
    return {
        "2024": {
            "A": reservoir_doc("2024-05-01", ctsi=35.0),
            "B": reservoir_doc("2024-06-01", ctsi=55.0),
            "C": reservoir_doc(None),
        },
        "2023": {
            "A": reservoir_doc("2023-11-20"),
            "D": WQConnectionError("Network error: connection reset"),
        },
    }


@pytest.fixture
def fake_client(years, config):
    return FakeClient(years, graphics={"A": SVG_A}, config=config)
