"""
Tests for aggregation, quality scoring and snapshot assembly.
"""

import pytest  # type: ignore
from unittest.mock import Mock

from src.station_network.core import DateUtils
from src.station_network.errors import AllEndpointsFailed, EndpointTimeout
from src.station_network.models import (
    Coordinates,
    EndpointOutcome,
    Reading,
    Station,
    WeatherSnapshot,
)
from src.station_network.processing import QualityScorer, SnapshotAggregator, SnapshotBuilder
from src.station_network.services import CoordinateResolver, StationRegistry


class TestSnapshotAggregator:
    """Test per data type summaries."""

    @pytest.fixture
    def aggregator(self):
        """Create aggregator instance."""
        return SnapshotAggregator(logger=Mock())

    def test_single_reading(self, aggregator):
        summary = aggregator.summarize("temperature", [Reading("S1", 30.0)])

        assert summary.count == 1
        assert summary.average == 30.0
        assert summary.min == 30.0
        assert summary.max == 30.0

    def test_average_rounded(self, aggregator):
        summary = aggregator.summarize(
            "humidity", [Reading("S1", 70.0), Reading("S2", 71.0), Reading("S3", 71.0)]
        )
        assert summary.average == 70.67
        assert summary.min == 70.0
        assert summary.max == 71.0

    def test_empty_readings(self, aggregator):
        summary = aggregator.summarize("wind_speed", [])

        assert summary.count == 0
        assert summary.average is None
        assert summary.to_dict() == {"readings": [], "count": 0}

    def test_filter_selected(self, aggregator):
        readings = [Reading("S1", 1.0), Reading("S2", 2.0), Reading("S3", 3.0)]

        kept = aggregator.filter_selected(readings, {"S1", "S3"})

        assert [r.station_id for r in kept] == ["S1", "S3"]

    def test_filter_without_selection_keeps_all(self, aggregator):
        readings = [Reading("S1", 1.0), Reading("S2", 2.0)]
        assert aggregator.filter_selected(readings, set()) == readings


class TestQualityScorer:
    """Test data quality and coverage scoring."""

    @pytest.fixture
    def scorer(self):
        """Create scorer instance."""
        return QualityScorer(logger=Mock())

    def test_all_failed_scores_zero(self, scorer):
        assert scorer.data_quality_score(5, 0, 0, 0, 5) == 0

    def test_perfect_run(self, scorer):
        assert scorer.data_quality_score(5, 5, 50, 5, 5) == 100

    def test_station_coverage_is_capped(self, scorer):
        assert scorer.data_quality_score(5, 5, 80, 5, 5) == 100

    def test_partial_run(self, scorer):
        # 0.4 * 3/5 + 0.3 * 10/50 + 0.3 * 3/5 = 0.24 + 0.06 + 0.18
        assert scorer.data_quality_score(5, 3, 10, 3, 5) == 48

    def test_no_endpoints(self, scorer):
        assert scorer.data_quality_score(0, 0, 0, 0, 0) == 0

    def test_deterministic(self, scorer):
        first = scorer.data_quality_score(5, 4, 17, 4, 5)
        second = scorer.data_quality_score(5, 4, 17, 4, 5)
        assert first == second

    def test_geographic_coverage(self, scorer):
        positions = {
            "N": Coordinates(lat=1.42, lng=103.80, name="n"),
            "C1": Coordinates(lat=1.33, lng=103.80, name="c1"),
            "C2": Coordinates(lat=1.34, lng=103.79, name="c2"),
            "E": Coordinates(lat=1.33, lng=103.95, name="e"),
        }

        coverage = scorer.geographic_coverage(["N", "C1", "C2", "E", "X"], positions.get)

        assert coverage.regions_covered == 3
        assert coverage.total_regions == 5
        assert coverage.coverage_percentage == 60
        assert coverage.stations_by_region == {
            "north": 1, "south": 0, "east": 1, "west": 0, "central": 2,
        }


class TestSnapshotBuilder:
    """Test snapshot assembly from outcomes."""

    @pytest.fixture
    def registry(self):
        """Registry with two temperature stations and one rainfall station."""
        registry = StationRegistry(logger=Mock())
        registry.observe("temperature", [Reading("S60", 30.0), Reading("S24", 28.0)])
        registry.observe("rainfall", [Reading("S50", 0.4)])
        registry.set_coordinates("S60", Coordinates(lat=1.2494, lng=103.8303, name="Sentosa Island"))
        registry.set_coordinates("S24", Coordinates(lat=1.3677, lng=103.7069, name="Choa Chu Kang"))
        registry.get("S60").priority_level = "high"
        return registry

    @pytest.fixture
    def builder(self):
        """Create builder with a fixed timezone."""
        return SnapshotBuilder(date_utils=DateUtils("Asia/Singapore"), logger=Mock())

    def test_partial_failure(self, builder, registry):
        outcomes = [
            EndpointOutcome.ok("temperature", "t", [Reading("S60", 30.0), Reading("S24", 28.0)], attempts=1),
            EndpointOutcome.ok("rainfall", "r", [Reading("S50", 0.4)], attempts=1),
            EndpointOutcome.failed("humidity", "h", EndpointTimeout("slow"), attempts=2),
        ]
        selection = {
            "temperature": [registry.get("S60")],
            "rainfall": [registry.get("S50")],
        }

        snapshot = builder.build(
            outcomes, selection, registry,
            collection_duration_ms=250,
            resolver=CoordinateResolver(logger=Mock()),
        )

        assert snapshot.api_calls_total == 3
        assert snapshot.api_calls_succeeded == 2
        assert snapshot.api_calls_failed == 1
        assert snapshot.stations_used == ("S50", "S60")
        assert set(snapshot.per_data_type) == {"temperature", "rainfall"}
        assert snapshot.per_data_type["temperature"].count == 1
        assert snapshot.per_data_type["temperature"].average == 30.0
        assert snapshot.collection_duration_ms == 250
        assert snapshot.timestamp.endswith("+08:00")

        # S50 has no registry coordinates; the resolver supplies them
        assert snapshot.station_details["S50"]["name"] == "Clementi Road"
        assert snapshot.station_details["S60"]["priority_level"] == "high"
        assert snapshot.geographic_coverage.regions_covered == 2

        humidity = snapshot.endpoint_results[2]
        assert humidity["status"] == "rejected"
        assert humidity["error_kind"] == "EndpointTimeout"
        assert humidity["attempts"] == 2
        assert not snapshot.all_endpoints_failed

    def test_all_failed(self, builder, registry):
        outcomes = [
            EndpointOutcome.failed(name, name, EndpointTimeout("slow"), attempts=2)
            for name in ["temperature", "humidity", "rainfall", "wind_speed", "wind_direction"]
        ]

        snapshot = builder.build(outcomes, {}, registry)

        assert snapshot.data_quality_score == 0
        assert snapshot.stations_used == ()
        assert snapshot.per_data_type == {}
        assert snapshot.api_calls_failed == 5
        assert snapshot.all_endpoints_failed
        with pytest.raises(AllEndpointsFailed) as ctx:
            snapshot.raise_for_failure()
        assert set(ctx.value.failures) == {
            "temperature", "humidity", "rainfall", "wind_speed", "wind_direction",
        }

    def test_retries_lower_quality(self, builder, registry):
        def outcomes(temperature_attempts):
            return [
                EndpointOutcome.ok(
                    "temperature", "t", [Reading("S60", 30.0)], attempts=temperature_attempts
                ),
                EndpointOutcome.ok("rainfall", "r", [Reading("S50", 0.4)], attempts=1),
            ]
        selection = {
            "temperature": [registry.get("S60")],
            "rainfall": [registry.get("S50")],
        }

        clean = builder.build(outcomes(1), selection, registry)
        retried = builder.build(outcomes(2), selection, registry)

        assert retried.data_quality_score < clean.data_quality_score
        # Endpoint-level counters ignore retries
        assert retried.api_calls_total == clean.api_calls_total == 2
        assert retried.api_calls_succeeded == 2

    def test_empty_data_type_is_reported(self, builder, registry):
        outcomes = [EndpointOutcome.ok("wind_speed", "w", [])]

        snapshot = builder.build(outcomes, {"wind_speed": []}, registry)

        assert snapshot.per_data_type["wind_speed"].count == 0
        assert snapshot.stations_used == ()

    def test_snapshot_maps_are_read_only(self, builder, registry):
        outcomes = [EndpointOutcome.ok("temperature", "t", [Reading("S60", 30.0)], attempts=1)]
        snapshot = builder.build(outcomes, {"temperature": [registry.get("S60")]}, registry)

        with pytest.raises(TypeError):
            snapshot.per_data_type["rainfall"] = snapshot.per_data_type["temperature"]
        with pytest.raises(TypeError):
            snapshot.station_details["S60"]["name"] = "Elsewhere"
        with pytest.raises(TypeError):
            snapshot.endpoint_results[0]["status"] = "rejected"
        with pytest.raises(TypeError):
            snapshot.geographic_coverage.stations_by_region["south"] = 99

        # Serialized output is plain, mutable JSON data
        data = snapshot.to_dict()
        data["per_data_type"]["rainfall"] = {}
        assert isinstance(data["station_details"]["S60"]["data_types"], list)
        assert "rainfall" not in snapshot.per_data_type

    def test_round_trip(self, builder, registry):
        outcomes = [EndpointOutcome.ok("temperature", "t", [Reading("S60", 30.0)])]
        snapshot = builder.build(outcomes, {"temperature": [registry.get("S60")]}, registry)

        restored = WeatherSnapshot.from_dict(snapshot.to_dict())

        assert restored == snapshot


class TestStationModel:
    """Test station serialization."""

    def test_station_round_trip(self):
        station = Station(
            id="S60",
            data_types=["temperature"],
            coordinates=Coordinates(lat=1.2494, lng=103.8303, name="Sentosa Island"),
            readings_count=3,
            priority_score=42.5,
            priority_level="medium",
        )

        restored = Station.from_dict(station.to_dict())

        assert restored == station
        assert restored.name == "Sentosa Island"

    def test_station_name_without_coordinates(self):
        assert Station(id="S999").name == "Station S999"
