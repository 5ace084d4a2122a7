"""
Configuration for the monitoring data client and navigation engine.
"""

import os
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple

from .exceptions import WQConfigError

DEFAULT_BASE_URL = "https://wq.example.org/"
SUPPORTED_YEARS: Tuple[str, ...] = (
    "2019",
    "2020",
    "2021",
    "2022",
    "2023",
    "2024",
    "2025",
)
# Usage figures are only published for one canonical year
REFERENCE_YEAR = "2024"
GRAPHIC_PREFIX = "Dam_S"


def _default_year(supported: Tuple[str, ...]) -> str:
    this_year = str(date.today().year)
    if this_year in supported:
        return this_year
    return max(supported)


@dataclass(frozen=True)
class MonitorConfig:
    """
    Settings shared by the client, loader and navigator.

    Args:
        base_url: Root URL the data files are published under
        timeout: Request timeout in seconds
        supported_years: Years accepted from the year selector and URL fragments
        default_year: Year shown when no fragment selects one (derived when None)
        reference_year: Year the water-usage table is always loaded from
        graphic_prefix: Element id prefix of station markers in reservoir SVGs
        user_agent: User-Agent header sent with every request
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    supported_years: Tuple[str, ...] = SUPPORTED_YEARS
    default_year: Optional[str] = None
    reference_year: str = REFERENCE_YEAR
    graphic_prefix: str = GRAPHIC_PREFIX
    user_agent: str = field(default="wqmonitor-client/0.1.0")

    def __post_init__(self) -> None:
        if not self.supported_years:
            raise WQConfigError("supported_years cannot be empty")
        if self.timeout <= 0:
            raise WQConfigError(f"timeout must be positive, got {self.timeout}")
        if self.default_year is None:
            object.__setattr__(
                self, "default_year", _default_year(tuple(self.supported_years))
            )
        elif self.default_year not in self.supported_years:
            raise WQConfigError(
                f"default_year {self.default_year!r} is not a supported year"
            )
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")

    def is_supported_year(self, year: Optional[str]) -> bool:
        return year is not None and year in self.supported_years

    @classmethod
    def from_env(cls, **overrides) -> "MonitorConfig":
        """
        Build a config from ``WQMONITOR_*`` environment variables.

        Keyword overrides take precedence over the environment.
        """
        values = {}
        base_url = os.environ.get("WQMONITOR_BASE_URL")
        if base_url:
            values["base_url"] = base_url
        timeout = os.environ.get("WQMONITOR_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError as e:
                raise WQConfigError(
                    f"WQMONITOR_TIMEOUT must be a number, got {timeout!r}"
                ) from e
        reference_year = os.environ.get("WQMONITOR_REFERENCE_YEAR")
        if reference_year:
            values["reference_year"] = reference_year
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
