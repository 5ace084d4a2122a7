"""
Exceptions for wqmonitor operations.
"""

from typing import Optional


class WQMonitorError(Exception):
    """Base exception for water-quality monitoring errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class WQConnectionError(WQMonitorError):
    """Error reaching the published data host."""

    pass


class WQNotFoundError(WQConnectionError):
    """A requested resource does not exist on the data host."""

    pass


class WQResponseError(WQMonitorError):
    """A resource was fetched but its content could not be used."""

    pass


class ReservoirListError(WQMonitorError):
    """The reservoir list for a year could not be loaded; the load cycle is abandoned."""

    def __init__(self, year: str, cause: Optional[BaseException] = None):
        super().__init__(
            f"Failed to load reservoir list for {year}",
            details=str(cause) if cause else None,
        )
        self.year = year


class WQConfigError(WQMonitorError):
    """Invalid configuration value."""

    pass
