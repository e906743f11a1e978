"""
Pytest configuration and shared fixtures for all tests.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import json
import requests  # type: ignore

# Add the project root to sys.path so we can import from src
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

ENDPOINTS = {
    "temperature": "https://feeds.test/temperature",
    "humidity": "https://feeds.test/humidity",
    "rainfall": "https://feeds.test/rainfall",
    "wind_speed": "https://feeds.test/wind-speed",
    "wind_direction": "https://feeds.test/wind-direction",
}


def json_response(body, status_code=200):
    """Build a mock requests.Response carrying a JSON body."""
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.json.return_value = body
    return response


def mock_session(routes):
    """
    Build a mock requests.Session.

    Args:
        routes: URL to a response, an exception instance, or a list of those
            consumed one per request
    """
    session = Mock(spec=requests.Session)
    session.headers = {}
    queues = {url: list(value) if isinstance(value, list) else value for url, value in routes.items()}

    def request(method, url, **kwargs):
        result = queues[url]
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    session.request.side_effect = request
    return session


@pytest.fixture(scope="session")
def fixtures_dir():
    """Get the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def sample_feeds(fixtures_dir):
    """Load sample feed payloads keyed by data type."""
    data_file = fixtures_dir / "sample_feeds.json"
    with open(data_file) as f:
        return json.load(f)


@pytest.fixture
def fast_config_data():
    """Configuration dictionary with retries and delays that never sleep."""
    return {
        "endpoints": dict(ENDPOINTS),
        "fetch": {
            "timeout": 1,
            "max_attempts": 2,
            "backoff_base": 0,
            "backoff_jitter": 0,
            "inter_call_delay": 0,
        },
        "processing": {"timezone": "Asia/Singapore"},
    }


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test running a full collection cycle"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test (no external dependencies)"
    )
