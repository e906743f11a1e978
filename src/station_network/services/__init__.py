"""
Business logic services for the station network collector.

Services keep the station registry, resolve coordinates, orchestrate
endpoint fetches, select stations and persist snapshots.
"""

from .registry import StationRegistry
from .coordinate_resolver import CoordinateResolver, KNOWN_COORDINATES
from .fetcher import FetchOrchestrator
from .selector import StationSelector, FALLBACK_STATIONS
from .writer import SnapshotWriter

__all__ = [
    "StationRegistry",
    "CoordinateResolver",
    "KNOWN_COORDINATES",
    "FetchOrchestrator",
    "StationSelector",
    "FALLBACK_STATIONS",
    "SnapshotWriter",
]
