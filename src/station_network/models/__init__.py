"""
Data models for the station network collector.

Contains DTOs for stations, readings, fetch outcomes and snapshots.
"""

from .station import (
    Coordinates,
    Proximity,
    ReferenceLocation,
    Station,
    SOURCE_KNOWN,
    SOURCE_ESTIMATED,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
)
from .reading import Reading, EndpointOutcome, FULFILLED, REJECTED
from .snapshot import DataTypeSummary, GeographicCoverage, WeatherSnapshot

__all__ = [
    "Coordinates",
    "Proximity",
    "ReferenceLocation",
    "Station",
    "SOURCE_KNOWN",
    "SOURCE_ESTIMATED",
    "STATUS_ACTIVE",
    "STATUS_INACTIVE",
    "Reading",
    "EndpointOutcome",
    "FULFILLED",
    "REJECTED",
    "DataTypeSummary",
    "GeographicCoverage",
    "WeatherSnapshot",
]
