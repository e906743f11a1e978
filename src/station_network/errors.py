"""
Exception hierarchy for the station network collector.

Per-endpoint errors are classified at the HTTP client and turned into
rejected outcomes by the fetch orchestrator; they never abort a run.
"""

from typing import Dict, Optional


class StationNetworkError(Exception):
    """Base class for all collector errors."""


class FetchError(StationNetworkError):
    """A data-type endpoint could not be fetched."""

    retryable = False

    def __init__(self, message: str, data_type: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.data_type = data_type
        self.url = url
        self.attempts = 0


class EndpointTimeout(FetchError):
    """The request exceeded its per-attempt timeout."""

    retryable = True


class EndpointTransportError(FetchError):
    """Connection, DNS or other transport level failure."""

    retryable = True


class EndpointBadResponse(FetchError):
    """Non-2xx status or a body that is not a readings payload."""

    def __init__(
        self,
        message: str,
        data_type: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, data_type=data_type, url=url)
        self.status_code = status_code


class FetchCancelled(FetchError):
    """The collection run was cancelled before this endpoint completed."""


class AllEndpointsFailed(StationNetworkError):
    """No endpoint succeeded in a collection cycle."""

    def __init__(self, failures: Dict[str, str]):
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {reason}" for name, reason in self.failures.items())
        super().__init__(f"All {len(self.failures)} endpoints failed ({detail})")


class MissingCoordinates(StationNetworkError):
    """No authoritative position is known for a station."""

    def __init__(self, station_id: str):
        super().__init__(f"No known coordinates for station {station_id}")
        self.station_id = station_id
