"""
Integration tests for the complete collection cycle.

Runs the engine and the application against mocked feed endpoints.
"""

import json
import threading
from unittest.mock import Mock, patch

import pytest  # type: ignore
import requests  # type: ignore

from src.station_network.core import Config
from src.station_network.engine import CollectionEngine
from src.station_network.main import StationNetworkApp, main
from src.station_network.services import SnapshotWriter, StationRegistry

from conftest import ENDPOINTS, json_response, mock_session


def routes_from(sample_feeds, failing=(), error=None):
    """Map every endpoint to its sample payload, or to ``error`` if failing."""
    error = error or requests.exceptions.Timeout("read timed out")
    return {
        url: error if name in failing else json_response(sample_feeds[name])
        for name, url in ENDPOINTS.items()
    }


@pytest.mark.integration
class TestCollectionEngine:
    """Test full collection cycles."""

    @pytest.fixture
    def config(self, fast_config_data):
        """Fast, sleep-free configuration."""
        return Config.from_dict(fast_config_data)

    def test_full_cycle(self, config, sample_feeds):
        engine = CollectionEngine(config, session=mock_session(routes_from(sample_feeds)), logger=Mock())

        snapshot = engine.collect()

        assert snapshot.api_calls_total == 5
        assert snapshot.api_calls_succeeded == 5
        assert snapshot.api_calls_failed == 0
        assert snapshot.stations_used == ("S109", "S121", "S217", "S50", "S900")
        assert snapshot.data_quality_score == 73

        temperature = snapshot.per_data_type["temperature"]
        assert temperature.count == 3
        assert temperature.average == 30.47
        assert temperature.min == 29.8
        assert temperature.max == 31.2

        # Non-numeric rainfall values are dropped
        assert snapshot.per_data_type["rainfall"].count == 3
        # A fulfilled feed with no readings is still reported
        assert snapshot.per_data_type["wind_speed"].count == 0

        # Feed metadata positions are authoritative
        s109 = engine.registry.get("S109")
        assert s109.coordinates.is_known
        assert s109.coordinates.lat == 1.3764
        assert set(s109.data_types) == {"temperature", "humidity", "wind_direction"}

        # Never published, never in the table: estimated
        assert not engine.registry.get("S900").coordinates.is_known

    def test_all_endpoints_time_out(self, config, sample_feeds):
        session = mock_session(routes_from(sample_feeds, failing=set(ENDPOINTS)))
        engine = CollectionEngine(config, session=session, logger=Mock())

        snapshot = engine.collect()

        assert snapshot.data_quality_score == 0
        assert snapshot.stations_used == ()
        assert snapshot.per_data_type == {}
        assert snapshot.api_calls_failed == 5
        assert snapshot.all_endpoints_failed
        # Every endpoint was retried once
        assert session.request.call_count == 10
        assert all(r["error_kind"] == "EndpointTimeout" for r in snapshot.endpoint_results)

    def test_partial_failure(self, config, sample_feeds):
        routes = routes_from(sample_feeds, failing={"humidity", "wind_direction"})
        engine = CollectionEngine(config, session=mock_session(routes), logger=Mock())

        snapshot = engine.collect()

        assert snapshot.api_calls_succeeded == 3
        assert snapshot.api_calls_failed == 2
        assert set(snapshot.per_data_type) == {"temperature", "rainfall", "wind_speed"}
        assert 0 < snapshot.data_quality_score < 100
        statuses = {r["data_type"]: r["status"] for r in snapshot.endpoint_results}
        assert statuses["humidity"] == "rejected"
        assert statuses["temperature"] == "fulfilled"

    def test_server_error_is_not_retried(self, config, sample_feeds):
        routes = routes_from(sample_feeds)
        routes[ENDPOINTS["rainfall"]] = json_response({}, status_code=500)
        session = mock_session(routes)
        engine = CollectionEngine(config, session=session, logger=Mock())

        snapshot = engine.collect()

        assert session.request.call_count == 5
        rainfall = [r for r in snapshot.endpoint_results if r["data_type"] == "rainfall"][0]
        assert rainfall["error_kind"] == "EndpointBadResponse"
        assert rainfall["attempts"] == 1

    def test_cancelled_cycle(self, config, sample_feeds):
        session = mock_session(routes_from(sample_feeds))
        engine = CollectionEngine(config, session=session, logger=Mock())
        cancel = threading.Event()
        cancel.set()

        snapshot = engine.collect(cancel_event=cancel)

        session.request.assert_not_called()
        assert snapshot.all_endpoints_failed
        assert {r["error_kind"] for r in snapshot.endpoint_results} == {"FetchCancelled"}

    def test_registry_carries_across_cycles(self, config, sample_feeds):
        registry = StationRegistry(logger=Mock())

        for _ in range(2):
            engine = CollectionEngine(
                config, registry, session=mock_session(routes_from(sample_feeds)), logger=Mock()
            )
            engine.collect()

        assert registry.get("S50").readings_count == 6
        assert len(registry) == 5

    def test_selection_is_bounded(self, config, sample_feeds):
        feeds = json.loads(json.dumps(sample_feeds))
        feeds["temperature"]["items"][0]["readings"] = [
            {"station_id": f"S{100 + n}", "value": 25.0 + n / 10} for n in range(40)
        ]
        routes = {
            url: json_response(feeds[name]) for name, url in ENDPOINTS.items()
        }
        engine = CollectionEngine(config, session=mock_session(routes), logger=Mock())

        snapshot = engine.collect()

        assert snapshot.per_data_type["temperature"].count == 8

    def test_retried_endpoint_lowers_quality(self, config, sample_feeds):
        routes = routes_from(sample_feeds)
        routes[ENDPOINTS["temperature"]] = [
            requests.exceptions.Timeout("read timed out"),
            json_response(sample_feeds["temperature"]),
        ]
        session = mock_session(routes)
        engine = CollectionEngine(config, session=session, logger=Mock())

        snapshot = engine.collect()

        assert session.request.call_count == 6
        assert snapshot.api_calls_succeeded == 5
        assert snapshot.api_calls_failed == 0
        assert snapshot.data_quality_score < 73

    def test_partial_threshold_override(self, fast_config_data, sample_feeds):
        data = dict(fast_config_data)
        data["scoring"] = {"thresholds": {"critical": 90.0}}
        config = Config.from_dict(data)
        engine = CollectionEngine(config, session=mock_session(routes_from(sample_feeds)), logger=Mock())

        snapshot = engine.collect()

        assert snapshot.api_calls_succeeded == 5
        levels = {details["priority_level"] for details in snapshot.station_details.values()}
        assert levels <= {"critical", "high", "medium", "low"}


class TestStationNetworkApp:
    """Test the application entry point."""

    @pytest.fixture
    def config_file(self, tmp_path, fast_config_data, monkeypatch):
        """Write a configuration file pointing storage at tmp_path."""
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "test.log"))
        data = dict(fast_config_data)
        data["storage"] = {
            "registry_path": str(tmp_path / "registry.json"),
            "output_dir": str(tmp_path / "weather"),
        }
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data))
        return path

    def test_run_persists_snapshot_and_registry(self, tmp_path, config_file, sample_feeds):
        session = mock_session(routes_from(sample_feeds))

        with patch("src.station_network.api.client.requests.Session", return_value=session):
            snapshot = StationNetworkApp(config_file=str(config_file)).run()

        assert (tmp_path / "registry.json").exists()
        assert (tmp_path / "weather" / "collection-statistics.json").exists()
        latest = SnapshotWriter(tmp_path / "weather").load()
        assert latest == snapshot

        # The next run reloads the saved registry
        session = mock_session(routes_from(sample_feeds))
        with patch("src.station_network.api.client.requests.Session", return_value=session):
            app = StationNetworkApp(config_file=str(config_file))
            app.run()
        assert app.registry.get("S50").readings_count == 6

    def test_run_with_corrupt_registry_record(self, tmp_path, config_file, sample_feeds):
        (tmp_path / "registry.json").write_text(json.dumps({"stations": [
            {"data_types": ["temperature"]},
            {"station_id": "S50", "data_types": ["rainfall"], "readings_count": 4},
        ]}))
        session = mock_session(routes_from(sample_feeds))

        with patch("src.station_network.api.client.requests.Session", return_value=session):
            app = StationNetworkApp(config_file=str(config_file))
            snapshot = app.run()

        assert snapshot.api_calls_succeeded == 5
        assert app.registry.get("S50").readings_count >= 4

    def test_cli_overrides_storage(self, tmp_path, config_file, sample_feeds):
        output_dir = tmp_path / "elsewhere"
        session = mock_session(routes_from(sample_feeds))

        with patch("src.station_network.api.client.requests.Session", return_value=session):
            app = StationNetworkApp(config_file=str(config_file), output_dir=str(output_dir))
            app.run()

        assert (output_dir / "latest.json").exists()

    def test_main_exits_when_all_endpoints_fail(self, config_file, sample_feeds, monkeypatch):
        session = mock_session(routes_from(sample_feeds, failing=set(ENDPOINTS)))
        monkeypatch.setattr("sys.argv", ["station-network", "--config", str(config_file)])

        with patch("src.station_network.api.client.requests.Session", return_value=session):
            with pytest.raises(SystemExit) as ctx:
                main()

        assert ctx.value.code == 1

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            StationNetworkApp(config_file=str(tmp_path / "missing.json"))
