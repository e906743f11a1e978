"""
Data quality and geographic coverage scoring.
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from ..algorithms.geo import determine_region
from ..core import constants
from ..models import Coordinates, GeographicCoverage


class QualityScorer:
    """Score one collection cycle."""

    def __init__(
        self,
        expected_total_stations: int = constants.EXPECTED_TOTAL_STATIONS,
        success_rate_weight: float = constants.SUCCESS_RATE_WEIGHT,
        station_coverage_weight: float = constants.STATION_COVERAGE_WEIGHT,
        data_type_coverage_weight: float = constants.DATA_TYPE_COVERAGE_WEIGHT,
        region_thresholds: Optional[Dict[str, float]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.expected_total_stations = expected_total_stations
        self.success_rate_weight = success_rate_weight
        self.station_coverage_weight = station_coverage_weight
        self.data_type_coverage_weight = data_type_coverage_weight
        self.region_thresholds = region_thresholds or constants.REGION_THRESHOLDS
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config, logger: Optional[logging.Logger] = None) -> "QualityScorer":
        quality = config.quality
        return cls(
            expected_total_stations=quality["expected_total_stations"],
            success_rate_weight=quality["success_rate_weight"],
            station_coverage_weight=quality["station_coverage_weight"],
            data_type_coverage_weight=quality["data_type_coverage_weight"],
            logger=logger,
        )

    def data_quality_score(
        self,
        api_calls_total: int,
        api_calls_succeeded: int,
        stations_used: int,
        fulfilled_endpoints: int,
        total_endpoints: int
    ) -> int:
        """
        0-100 score from success rate, station coverage and data type coverage.

        Args:
            api_calls_total: HTTP attempts made across all endpoints
            api_calls_succeeded: Attempts that succeeded (one per fulfilled endpoint)
            stations_used: Distinct stations contributing readings
            fulfilled_endpoints: Endpoints with a fulfilled outcome
            total_endpoints: Endpoints configured

        Returns:
            Integer score in [0, 100]
        """
        success_rate = api_calls_succeeded / api_calls_total if api_calls_total else 0.0
        if self.expected_total_stations > 0:
            station_coverage = min(1.0, stations_used / self.expected_total_stations)
        else:
            station_coverage = 0.0
        type_coverage = fulfilled_endpoints / total_endpoints if total_endpoints else 0.0

        score = round(100 * (
            self.success_rate_weight * success_rate
            + self.station_coverage_weight * station_coverage
            + self.data_type_coverage_weight * type_coverage
        ))
        score = max(0, min(100, int(score)))

        self.logger.info(
            f"Data quality {score}: success={success_rate:.2f}, "
            f"stations={station_coverage:.2f}, types={type_coverage:.2f}"
        )
        return score

    def geographic_coverage(
        self,
        station_ids: Iterable[str],
        coordinates_for: Callable[[str], Optional[Coordinates]]
    ) -> GeographicCoverage:
        """
        Bucket stations by region.

        Args:
            station_ids: Stations used in the snapshot
            coordinates_for: Lookup returning a station's coordinates or None

        Returns:
            GeographicCoverage over the five fixed regions
        """
        regions = {region: 0 for region in constants.REGIONS}

        for station_id in station_ids:
            coordinates = coordinates_for(station_id)
            if coordinates is None:
                continue
            region = determine_region(coordinates.lat, coordinates.lng, self.region_thresholds)
            regions[region] += 1

        covered = sum(1 for count in regions.values() if count > 0)
        total = len(regions)
        return GeographicCoverage(
            regions_covered=covered,
            total_regions=total,
            coverage_percentage=round(covered / total * 100),
            stations_by_region=regions,
        )
