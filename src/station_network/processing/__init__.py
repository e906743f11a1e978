"""
Data processing module for the station network collector.

Provides aggregation, quality scoring and snapshot assembly.
"""

import logging
from typing import Dict, List, Optional, TYPE_CHECKING

from .aggregator import SnapshotAggregator
from .quality import QualityScorer
from ..core.date_utils import DateUtils
from ..models import Coordinates, DataTypeSummary, EndpointOutcome, Station, WeatherSnapshot
from ..models.snapshot import station_ids

if TYPE_CHECKING:
    from ..services.coordinate_resolver import CoordinateResolver
    from ..services.registry import StationRegistry


class SnapshotBuilder:
    """
    Assemble a WeatherSnapshot from settled endpoint outcomes.

    Only fulfilled outcomes contribute readings; rejected ones are counted
    and reported per endpoint.
    """

    def __init__(
        self,
        quality_scorer: Optional[QualityScorer] = None,
        aggregator: Optional[SnapshotAggregator] = None,
        date_utils: Optional[DateUtils] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize snapshot builder.

        Args:
            quality_scorer: Quality and coverage scorer
            aggregator: Per data type aggregator
            date_utils: Timestamp helper
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.quality_scorer = quality_scorer or QualityScorer(logger=logger)
        self.aggregator = aggregator or SnapshotAggregator(logger)
        self.date_utils = date_utils or DateUtils()

    def build(
        self,
        outcomes: List[EndpointOutcome],
        selection: Dict[str, List[Station]],
        registry: "StationRegistry",
        collection_duration_ms: int = 0,
        resolver: Optional["CoordinateResolver"] = None
    ) -> WeatherSnapshot:
        """
        Build the snapshot for one collection cycle.

        Args:
            outcomes: One settled outcome per configured endpoint
            selection: Data type to selected stations
            registry: Station registry (for coordinates and details)
            collection_duration_ms: Wall time of the cycle
            resolver: Fallback coordinate source for stations outside the registry

        Returns:
            Immutable WeatherSnapshot
        """
        fulfilled = [o for o in outcomes if o.is_fulfilled]
        failed = len(outcomes) - len(fulfilled)

        per_data_type: Dict[str, DataTypeSummary] = {}
        for outcome in fulfilled:
            selected_ids = {s.id for s in selection.get(outcome.data_type, [])}
            readings = self.aggregator.filter_selected(outcome.readings, selected_ids)
            per_data_type[outcome.data_type] = self.aggregator.summarize(
                outcome.data_type, readings
            )

        used = station_ids(per_data_type)

        def coordinates_for(station_id: str) -> Optional[Coordinates]:
            station = registry.get(station_id)
            if station is not None and station.coordinates is not None:
                return station.coordinates
            if resolver is not None:
                return resolver.resolve(station_id)
            return None

        # Success rate is per HTTP attempt, so retried endpoints lower it
        requests_made = sum(max(o.attempts, 1 if o.is_fulfilled else 0) for o in outcomes)
        quality = self.quality_scorer.data_quality_score(
            api_calls_total=requests_made,
            api_calls_succeeded=len(fulfilled),
            stations_used=len(used),
            fulfilled_endpoints=len(fulfilled),
            total_endpoints=len(outcomes),
        )
        coverage = self.quality_scorer.geographic_coverage(used, coordinates_for)

        if outcomes and not fulfilled:
            self.logger.error("All endpoints failed; emitting degraded snapshot")

        return WeatherSnapshot(
            timestamp=self.date_utils.to_iso(),
            collection_duration_ms=collection_duration_ms,
            api_calls_total=len(outcomes),
            api_calls_succeeded=len(fulfilled),
            api_calls_failed=failed,
            stations_used=tuple(used),
            data_quality_score=quality,
            per_data_type=per_data_type,
            geographic_coverage=coverage,
            endpoint_results=tuple(o.to_dict() for o in outcomes),
            station_details={
                station_id: self._station_details(station_id, registry, coordinates_for)
                for station_id in used
            },
        )

    @staticmethod
    def _station_details(station_id, registry, coordinates_for) -> Dict:
        station = registry.get(station_id)
        coordinates = coordinates_for(station_id)
        details = {
            "station_id": station_id,
            "name": coordinates.name if coordinates else f"Station {station_id}",
            "coordinates": coordinates.to_dict() if coordinates else None,
        }
        if station is not None:
            details.update({
                "data_types": list(station.data_types),
                "priority_level": station.priority_level,
                "priority_score": station.priority_score,
                "nearest_key_location": station.nearest_key_location,
                "reliability_score": station.reliability_score,
            })
        return details


__all__ = [
    "SnapshotAggregator",
    "QualityScorer",
    "SnapshotBuilder",
]
