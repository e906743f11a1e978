"""
Proximity and priority scoring.

Scores every station by how close it is to the nearest reference location,
how many data types it reports and how reliable it has been:

    proximity_bonus   = max(0, cutoff_km - min_distance_km) * proximity_weight
    data_type_bonus   = len(data_types) * data_type_weight
    reliability_bonus = reliability_score * reliability_weight
    priority_score    = proximity_bonus + data_type_bonus + reliability_bonus

Each term is monotonic in its input and is exposed separately so that the
weights can be tuned through configuration.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .geo import distance_km
from ..core import constants
from ..models import Proximity, ReferenceLocation, Station


@dataclass(frozen=True)
class ScoreBreakdown:
    """The three additive terms of a priority score."""

    proximity_bonus: float
    data_type_bonus: float
    reliability_bonus: float

    @property
    def total(self) -> float:
        return self.proximity_bonus + self.data_type_bonus + self.reliability_bonus


class PriorityScorer:
    """Compute proximities, priority scores and priority levels."""

    def __init__(
        self,
        reference_locations: Iterable[ReferenceLocation],
        proximity_cutoff_km: float = constants.PROXIMITY_CUTOFF_KM,
        proximity_weight: float = constants.PROXIMITY_WEIGHT,
        data_type_weight: float = constants.DATA_TYPE_WEIGHT,
        reliability_weight: float = constants.RELIABILITY_WEIGHT,
        thresholds: Optional[Dict[str, float]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scorer.

        Args:
            reference_locations: Anchors for proximity scoring
            proximity_cutoff_km: Distance at which the proximity bonus reaches zero
            proximity_weight: Points per km inside the cutoff
            data_type_weight: Points per reported data type
            reliability_weight: Points for a reliability score of 1.0
            thresholds: Minimum score for critical, high and medium levels
            logger: Logger instance
        """
        self.reference_locations: List[ReferenceLocation] = list(reference_locations)
        self.proximity_cutoff_km = proximity_cutoff_km
        self.proximity_weight = proximity_weight
        self.data_type_weight = data_type_weight
        self.reliability_weight = reliability_weight
        self.thresholds = dict(constants.PRIORITY_THRESHOLDS)
        self.thresholds.update(thresholds or {})
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "PriorityScorer":
        """Build a scorer from a Config instance."""
        scoring = config.scoring
        return cls(
            reference_locations=[
                ReferenceLocation.from_dict(loc) for loc in config.reference_locations
            ],
            proximity_cutoff_km=scoring["proximity_cutoff_km"],
            proximity_weight=scoring["proximity_weight"],
            data_type_weight=scoring["data_type_weight"],
            reliability_weight=scoring["reliability_weight"],
            thresholds=scoring["thresholds"],
            logger=logger,
        )

    def proximity_bonus(self, min_distance_km: Optional[float]) -> float:
        if min_distance_km is None:
            return 0.0
        return max(0.0, self.proximity_cutoff_km - min_distance_km) * self.proximity_weight

    def data_type_bonus(self, data_type_count: int) -> float:
        return data_type_count * self.data_type_weight

    def reliability_bonus(self, reliability_score: float) -> float:
        return reliability_score * self.reliability_weight

    def priority_level(self, score: float) -> str:
        """Map a score to critical, high, medium or low."""
        if score >= self.thresholds["critical"]:
            return "critical"
        if score >= self.thresholds["high"]:
            return "high"
        if score >= self.thresholds["medium"]:
            return "medium"
        return "low"

    def compute_proximities(
        self,
        station: Station
    ) -> Tuple[Dict[str, Proximity], Optional[str], Optional[float]]:
        """
        Distances from a station to every reference location.

        Returns:
            Tuple of (proximities by location key, nearest key, min distance).
            Nearest key and distance are None if the station has no coordinates
            or no reference locations are configured.
        """
        if station.coordinates is None:
            return {}, None, None

        proximities: Dict[str, Proximity] = {}
        nearest_key = None
        min_distance = None

        for location in self.reference_locations:
            distance = distance_km(
                station.coordinates.lat,
                station.coordinates.lng,
                location.lat,
                location.lng
            )
            proximities[location.key] = Proximity(
                distance_km=round(distance, 2),
                location_name=location.name,
                priority=location.priority,
            )
            if min_distance is None or distance < min_distance:
                min_distance = distance
                nearest_key = location.key

        return proximities, nearest_key, min_distance

    def breakdown(self, station: Station, min_distance: Optional[float] = None) -> ScoreBreakdown:
        """Score terms for a station without mutating it."""
        if min_distance is None:
            _, _, min_distance = self.compute_proximities(station)
        return ScoreBreakdown(
            proximity_bonus=self.proximity_bonus(min_distance),
            data_type_bonus=self.data_type_bonus(len(station.data_types)),
            reliability_bonus=self.reliability_bonus(station.reliability_score),
        )

    def score_station(self, station: Station) -> float:
        """
        Update a station's proximities, nearest location, score and level.

        Returns:
            The new priority score
        """
        proximities, nearest_key, min_distance = self.compute_proximities(station)
        terms = self.breakdown(station, min_distance)

        station.proximities = proximities
        station.nearest_key_location = nearest_key
        station.priority_score = terms.total
        station.priority_level = self.priority_level(terms.total)
        return station.priority_score

    def score_all(self, stations: Iterable[Station]) -> int:
        """
        Score every station.

        Returns:
            Number of stations scored
        """
        count = 0
        levels: Dict[str, int] = {}
        for station in stations:
            self.score_station(station)
            levels[station.priority_level] = levels.get(station.priority_level, 0) + 1
            count += 1

        self.logger.info(f"Scored {count} stations: {levels}")
        return count
