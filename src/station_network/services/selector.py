"""
Station selection service.

Narrows each data type to a bounded, score-ranked subset of its stations.
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Set, TYPE_CHECKING

from ..core import constants
from ..models import Station

if TYPE_CHECKING:
    from .coordinate_resolver import CoordinateResolver
    from .registry import StationRegistry


# Well-known stations used when the registry has nothing for a data type
FALLBACK_STATIONS: Dict[str, List[str]] = {
    "temperature": ["S60", "S24", "S107", "S104"],
    "humidity": ["S60", "S24", "S107", "S104"],
    "rainfall": ["S50", "S117", "S106", "S43"],
    "wind_speed": ["S60", "S24", "S107", "S104"],
    "wind_direction": ["S60", "S24", "S107", "S104"],
}


class StationSelector:
    """Pick the top stations per data type by priority score."""

    def __init__(
        self,
        min_per_type: int = constants.MIN_STATIONS_PER_TYPE,
        max_per_type: int = constants.MAX_STATIONS_PER_TYPE,
        fraction: float = constants.SELECTION_FRACTION,
        fallback_stations: Optional[Dict[str, List[str]]] = None,
        resolver: Optional["CoordinateResolver"] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize selector.

        Args:
            min_per_type: Lower bound on stations selected per data type
            max_per_type: Upper bound on stations selected per data type
            fraction: Share of available stations to select before clamping
            fallback_stations: Data type to station ids used when the
                registry has no stations for that type
            resolver: Used to attach coordinates to fallback stations
            logger: Logger instance
        """
        if min_per_type > max_per_type:
            raise ValueError("min_per_type cannot exceed max_per_type")
        self.min_per_type = min_per_type
        self.max_per_type = max_per_type
        self.fraction = fraction
        self.fallback_stations = (
            FALLBACK_STATIONS if fallback_stations is None else fallback_stations
        )
        self.resolver = resolver
        self.logger = logger or logging.getLogger(__name__)

    def selection_size(self, available: int) -> int:
        """
        Number of stations to select out of ``available``.

        ``clamp(ceil(fraction * available), min, max)``, never more than
        are available.
        """
        if available <= 0:
            return 0
        wanted = math.ceil(round(self.fraction * available, 6))
        wanted = max(self.min_per_type, min(self.max_per_type, wanted))
        return min(wanted, available)

    @staticmethod
    def rank(stations: Iterable[Station]) -> List[Station]:
        """Order by priority score descending, then station id ascending."""
        return sorted(stations, key=lambda s: (-s.priority_score, s.id))

    def select_for_type(
        self,
        data_type: str,
        candidates: List[Station]
    ) -> List[Station]:
        """Top stations among ``candidates``; fallback set if there are none."""
        if not candidates:
            return self.fallback(data_type)

        count = self.selection_size(len(candidates))
        selected = self.rank(candidates)[:count]

        self.logger.info(
            f"Selected {len(selected)} of {len(candidates)} {data_type} stations: "
            + ", ".join(f"{s.id} ({s.priority_score:.1f})" for s in selected)
        )
        return selected

    def select(
        self,
        registry: "StationRegistry",
        data_types: Iterable[str],
        active_ids: Optional[Dict[str, Set[str]]] = None
    ) -> Dict[str, List[Station]]:
        """
        Select stations for every data type.

        Args:
            registry: Scored station registry
            data_types: Data types to select for
            active_ids: Optional data type to ids of stations that reported in
                the current cycle; candidates are narrowed to these

        Returns:
            Data type to selected stations (never raises for missing data)
        """
        selection: Dict[str, List[Station]] = {}
        for data_type in data_types:
            candidates = registry.stations_for(data_type)
            if active_ids is not None and data_type in active_ids:
                reporting = active_ids[data_type]
                candidates = [s for s in candidates if s.id in reporting]
            selection[data_type] = self.select_for_type(data_type, candidates)
        return selection

    def fallback(self, data_type: str) -> List[Station]:
        """Hard-coded minimal station set for a data type."""
        station_ids = self.fallback_stations.get(data_type, [])
        if not station_ids:
            self.logger.warning(f"No stations and no fallback set for {data_type}")
            return []

        self.logger.warning(
            f"No registry stations for {data_type}, using fallback: {', '.join(station_ids)}"
        )
        stations = []
        for station_id in station_ids:
            station = Station(id=station_id, data_types=[data_type])
            if self.resolver is not None:
                station.coordinates = self.resolver.resolve(station_id)
            stations.append(station)
        return stations
