"""
Snapshot data models.

Contains the immutable output of one collection cycle.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .reading import Reading
from ..errors import AllEndpointsFailed


def _freeze(value: Any) -> Any:
    """Read-only view of nested dicts and lists."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    """Plain dicts and lists again, for JSON output."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class DataTypeSummary:
    """
    Aggregate of the selected readings for one data type.

    ``average``, ``min`` and ``max`` are None when there are no readings.
    """

    readings: Tuple[Reading, ...] = ()
    count: int = 0
    average: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "readings": [r.to_dict() for r in self.readings],
            "count": self.count,
        }
        if self.count:
            result["average"] = self.average
            result["min"] = self.min
            result["max"] = self.max
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataTypeSummary":
        return cls(
            readings=tuple(Reading.from_dict(r) for r in data.get("readings", [])),
            count=int(data.get("count", 0)),
            average=data.get("average"),
            min=data.get("min"),
            max=data.get("max"),
        )


@dataclass(frozen=True)
class GeographicCoverage:
    """Station counts per region for the stations used in a snapshot."""

    regions_covered: int
    total_regions: int
    coverage_percentage: int
    stations_by_region: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "stations_by_region", _freeze(self.stations_by_region))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions_covered": self.regions_covered,
            "total_regions": self.total_regions,
            "coverage_percentage": self.coverage_percentage,
            "stations_by_region": dict(self.stations_by_region),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeographicCoverage":
        return cls(
            regions_covered=int(data["regions_covered"]),
            total_regions=int(data["total_regions"]),
            coverage_percentage=int(data["coverage_percentage"]),
            stations_by_region=dict(data.get("stations_by_region", {})),
        )


@dataclass(frozen=True)
class WeatherSnapshot:
    """One complete, timestamped collection cycle."""

    timestamp: str
    collection_duration_ms: int
    api_calls_total: int
    api_calls_succeeded: int
    api_calls_failed: int
    stations_used: Tuple[str, ...]
    data_quality_score: int
    per_data_type: Mapping[str, DataTypeSummary]
    geographic_coverage: GeographicCoverage
    endpoint_results: Tuple[Mapping[str, Any], ...] = ()
    station_details: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        # frozen only blocks attribute assignment; the maps need their own guard
        object.__setattr__(self, "per_data_type", MappingProxyType(dict(self.per_data_type)))
        object.__setattr__(self, "endpoint_results", _freeze(self.endpoint_results))
        object.__setattr__(self, "station_details", _freeze(self.station_details))

    @property
    def all_endpoints_failed(self) -> bool:
        return self.api_calls_total > 0 and self.api_calls_succeeded == 0

    def raise_for_failure(self) -> None:
        """
        Raise AllEndpointsFailed if no endpoint succeeded.

        The engine never raises this itself; callers that treat a fully
        failed cycle as fatal call this on the returned snapshot.
        """
        if self.all_endpoints_failed:
            failures = {
                result["data_type"]: result.get("error", "")
                for result in self.endpoint_results
            }
            raise AllEndpointsFailed(failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "collection_duration_ms": self.collection_duration_ms,
            "api_calls_total": self.api_calls_total,
            "api_calls_succeeded": self.api_calls_succeeded,
            "api_calls_failed": self.api_calls_failed,
            "stations_used": list(self.stations_used),
            "data_quality_score": self.data_quality_score,
            "per_data_type": {
                name: summary.to_dict() for name, summary in self.per_data_type.items()
            },
            "geographic_coverage": self.geographic_coverage.to_dict(),
            "endpoint_results": _thaw(self.endpoint_results),
            "station_details": _thaw(self.station_details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        return cls(
            timestamp=data["timestamp"],
            collection_duration_ms=int(data["collection_duration_ms"]),
            api_calls_total=int(data["api_calls_total"]),
            api_calls_succeeded=int(data["api_calls_succeeded"]),
            api_calls_failed=int(data["api_calls_failed"]),
            stations_used=tuple(data.get("stations_used", [])),
            data_quality_score=int(data["data_quality_score"]),
            per_data_type={
                name: DataTypeSummary.from_dict(summary)
                for name, summary in data.get("per_data_type", {}).items()
            },
            geographic_coverage=GeographicCoverage.from_dict(data["geographic_coverage"]),
            endpoint_results=tuple(dict(r) for r in data.get("endpoint_results", [])),
            station_details={k: dict(v) for k, v in data.get("station_details", {}).items()},
        )


def station_ids(summaries: Dict[str, DataTypeSummary]) -> List[str]:
    """Sorted unique station ids across all summaries."""
    return sorted({r.station_id for s in summaries.values() for r in s.readings})
