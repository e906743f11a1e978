"""
Coordinate resolution service.

Maps station ids to positions. Authoritative positions come from a static
table of known stations or from the station metadata a feed publishes.
Anything else gets a deterministic regional estimate: a placeholder so that
proximity scoring and coverage statistics have something to work with, not
a geocoding result.
"""

import logging
import random
import re
import zlib
from typing import Dict, Optional, Tuple, TYPE_CHECKING

from ..algorithms.geo import clamp_to_bounds
from ..core import constants
from ..errors import MissingCoordinates
from ..models import Coordinates, SOURCE_ESTIMATED, SOURCE_KNOWN

if TYPE_CHECKING:
    from .registry import StationRegistry


# Known NEA weather station positions: (lat, lng, name)
KNOWN_COORDINATES: Dict[str, Tuple[float, float, str]] = {
    "S07": (1.3283, 103.9043, "Bedok"),
    "S24": (1.3677, 103.7069, "Choa Chu Kang"),
    "S43": (1.3429, 103.8847, "Kim Chuan Road"),
    "S44": (1.3135, 103.7982, "Lim Chu Kang"),
    "S50": (1.3162, 103.7649, "Clementi Road"),
    "S60": (1.2494, 103.8303, "Sentosa Island"),
    "S104": (1.3496, 103.7063, "Jurong West Street 52"),
    "S106": (1.3337, 103.8700, "Tai Seng"),
    "S107": (1.3048, 103.9318, "East Coast Parkway"),
    "S108": (1.3456, 103.6782, "Tuas"),
    "S109": (1.3337, 103.7768, "Ang Mo Kio Avenue 5"),
    "S111": (1.3458, 103.8200, "Scotts Road"),
    "S115": (1.3521, 103.8198, "Toa Payoh"),
    "S116": (1.3521, 103.7649, "Bukit Timah Road"),
    "S117": (1.3138, 103.8420, "Newton Road"),
    "S118": (1.3456, 103.7425, "Bukit Timah West"),
    "S121": (1.3520, 103.7767, "Bukit Timah Nature Reserve"),
    "S122": (1.3200, 103.7500, "Clementi West"),
    "S123": (1.3700, 103.8500, "Ang Mo Kio"),
}

_DIGITS = re.compile(r"\d+")


def _stable_seed(station_id: str) -> int:
    # hash() is salted per process; CRC32 is stable across runs
    return zlib.crc32(station_id.encode("utf-8"))


class CoordinateResolver:
    """Resolve station ids to coordinates with deterministic fallback."""

    def __init__(
        self,
        known_coordinates: Optional[Dict[str, Tuple[float, float, str]]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize resolver.

        Args:
            known_coordinates: Station id to (lat, lng, name); defaults to the
                built-in table
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._known: Dict[str, Tuple[float, float, str]] = dict(
            KNOWN_COORDINATES if known_coordinates is None else known_coordinates
        )
        self._learned: Dict[str, Tuple[float, float, str]] = {}

    def learn(self, station_id: str, lat: float, lng: float, name: Optional[str] = None) -> None:
        """Register an authoritative position published by a feed."""
        self._learned[station_id] = (lat, lng, name or f"Station {station_id}")

    def lookup(self, station_id: str) -> Coordinates:
        """
        Authoritative position for a station.

        Raises:
            MissingCoordinates: No learned or table entry exists
        """
        entry = self._learned.get(station_id) or self._known.get(station_id)
        if entry is None:
            raise MissingCoordinates(station_id)
        lat, lng, name = entry
        return Coordinates(lat=lat, lng=lng, name=name, source=SOURCE_KNOWN)

    def resolve(self, station_id: str) -> Coordinates:
        """
        Position for a station, estimated when no authoritative entry exists.

        Args:
            station_id: Station identifier

        Returns:
            Coordinates with source 'known' or 'estimated'
        """
        try:
            return self.lookup(station_id)
        except MissingCoordinates:
            return self.estimate(station_id)

    @staticmethod
    def estimate_region(station_id: str) -> str:
        """
        Region used for an estimated position.

        The numeric part of the id selects a band; ids without digits use a
        CRC32 of the id instead.
        """
        match = _DIGITS.search(station_id)
        number = int(match.group()) if match else _stable_seed(station_id) % 250
        for upper, region in constants.REGION_ID_BANDS:
            if number < upper:
                return region
        return constants.REGION_ID_DEFAULT

    def estimate(self, station_id: str) -> Coordinates:
        """
        Deterministic pseudo-position inside the station's estimated region.

        The same id always yields the same point, in any process.
        """
        region = self.estimate_region(station_id)
        lat_min, lat_max, lng_min, lng_max = constants.REGION_ESTIMATE_BOUNDS[region]

        rng = random.Random(_stable_seed(station_id))
        lat = lat_min + rng.random() * (lat_max - lat_min)
        lng = lng_min + rng.random() * (lng_max - lng_min)
        lat, lng = clamp_to_bounds(lat, lng)

        return Coordinates(
            lat=round(lat, 4),
            lng=round(lng, 4),
            name=f"{region.title()} Station {station_id}",
            source=SOURCE_ESTIMATED,
        )

    def resolve_registry(self, registry: "StationRegistry") -> Dict[str, int]:
        """
        Fill missing coordinates and upgrade estimates to known positions.

        Known coordinates are never replaced by estimates.

        Returns:
            Counts of stations resolved as 'known' and 'estimated'
        """
        counts = {SOURCE_KNOWN: 0, SOURCE_ESTIMATED: 0}

        for station in registry.stations():
            current = station.coordinates
            if current is not None and current.is_known:
                continue

            coordinates = self.resolve(station.id)
            if current is not None and coordinates == current:
                continue
            if registry.set_coordinates(station.id, coordinates):
                counts[coordinates.source] += 1
                self.logger.debug(
                    f"{station.id}: {coordinates.name} "
                    f"({coordinates.lat}, {coordinates.lng}) [{coordinates.source}]"
                )

        self.logger.info(
            f"Coordinates resolved: {counts[SOURCE_KNOWN]} known, "
            f"{counts[SOURCE_ESTIMATED]} estimated"
        )
        return counts
