"""
Configuration module for the station network collector.

Loads configuration from JSON file and environment variables.
"""

import json
import os
from typing import Dict, Any, List, Optional
from pathlib import Path

from . import constants


DEFAULT_REFERENCE_LOCATIONS: List[Dict[str, Any]] = [
    {
        "key": "hwa_chong",
        "name": "Hwa Chong International School",
        "lat": 1.3437,
        "lng": 103.7640,
        "priority": "primary",
    },
    {
        "key": "bukit_timah",
        "name": "Bukit Timah Nature Reserve",
        "lat": 1.3520,
        "lng": 103.7767,
        "priority": "secondary",
    },
    {
        "key": "newton",
        "name": "Newton",
        "lat": 1.3138,
        "lng": 103.8420,
        "priority": "tertiary",
    },
    {
        "key": "clementi",
        "name": "Clementi",
        "lat": 1.3162,
        "lng": 103.7649,
        "priority": "tertiary",
    },
]


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_file: Optional[str] = None, load: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses CONFIG_FILE env var
                        or defaults to 'config.json'
            load: Read the file immediately. Disabled by from_dict().
        """
        self.config_file = config_file or os.getenv("CONFIG_FILE", "config.json")
        self.config: Dict[str, Any] = {}
        if load:
            self._load_config()
            self._override_from_env()
            self._validate_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], apply_env: bool = False) -> "Config":
        """
        Build a configuration from an in-memory dictionary.

        Args:
            data: Configuration dictionary with the same layout as the JSON file
            apply_env: Apply environment variable overrides

        Returns:
            Validated Config instance
        """
        config = cls(config_file="<dict>", load=False)
        config.config = json.loads(json.dumps(data))
        if apply_env:
            config._override_from_env()
        config._validate_config()
        return config

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        with open(config_path, "r", encoding="utf-8") as f:
            self.config = json.load(f)

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        fetch = self.config.setdefault("fetch", {})
        if os.getenv("STATION_REQUEST_TIMEOUT"):
            fetch["timeout"] = float(os.getenv("STATION_REQUEST_TIMEOUT"))

        if os.getenv("STATION_MAX_ATTEMPTS"):
            fetch["max_attempts"] = int(os.getenv("STATION_MAX_ATTEMPTS"))

        if os.getenv("STATION_INTER_CALL_DELAY"):
            fetch["inter_call_delay"] = float(os.getenv("STATION_INTER_CALL_DELAY"))

        storage = self.config.setdefault("storage", {})
        if os.getenv("STATION_REGISTRY_PATH"):
            storage["registry_path"] = os.getenv("STATION_REGISTRY_PATH")

        if os.getenv("STATION_OUTPUT_DIR"):
            storage["output_dir"] = os.getenv("STATION_OUTPUT_DIR")

        if os.getenv("ENVIRONMENT"):
            self.config["environment"] = os.getenv("ENVIRONMENT")

    def _validate_config(self) -> None:
        """Validate endpoint and reference location definitions."""
        endpoints = self.config.get("endpoints")
        if endpoints is not None:
            if not isinstance(endpoints, dict):
                raise ValueError("'endpoints' must map data type names to URLs")
            empty = [name for name, url in endpoints.items() if not url]
            if empty:
                raise ValueError(f"Missing endpoint URL for data types: {', '.join(empty)}")

        locations = self.config.get("reference_locations")
        if locations is not None:
            missing_keys = []
            for index, location in enumerate(locations):
                for key in ("key", "lat", "lng", "priority"):
                    if key not in location:
                        missing_keys.append(f"reference_locations[{index}].{key}")
            if missing_keys:
                raise ValueError(
                    f"Missing required configuration keys: {', '.join(missing_keys)}"
                )

        if self.min_per_type > self.max_per_type:
            raise ValueError(
                f"selection.min_per_type ({self.min_per_type}) cannot exceed "
                f"selection.max_per_type ({self.max_per_type})"
            )

        if self.max_attempts < 1:
            raise ValueError("fetch.max_attempts must be at least 1")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'fetch.timeout')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def endpoints(self) -> Dict[str, str]:
        """Data type name to endpoint URL."""
        return dict(self.get("endpoints", constants.DEFAULT_ENDPOINTS))

    @property
    def reference_locations(self) -> List[Dict[str, Any]]:
        """Raw reference location definitions."""
        return list(self.get("reference_locations", DEFAULT_REFERENCE_LOCATIONS))

    @property
    def request_timeout(self) -> float:
        """Get per-attempt request timeout in seconds."""
        return self.get("fetch.timeout", constants.DEFAULT_REQUEST_TIMEOUT)

    @property
    def max_attempts(self) -> int:
        """Get maximum attempts per endpoint (first try included)."""
        return self.get("fetch.max_attempts", constants.DEFAULT_MAX_ATTEMPTS)

    @property
    def backoff_base(self) -> float:
        return self.get("fetch.backoff_base", constants.DEFAULT_BACKOFF_BASE)

    @property
    def backoff_jitter(self) -> float:
        return self.get("fetch.backoff_jitter", constants.DEFAULT_BACKOFF_JITTER)

    @property
    def inter_call_delay(self) -> float:
        """Get politeness delay between sequential endpoint calls."""
        return self.get("fetch.inter_call_delay", constants.DEFAULT_INTER_CALL_DELAY)

    @property
    def max_concurrent(self) -> int:
        """Get number of endpoints fetched in parallel (1 = sequential)."""
        return self.get("fetch.max_concurrent", constants.DEFAULT_MAX_CONCURRENT)

    @property
    def verify_ssl(self) -> bool:
        return self.get("fetch.verify_ssl", True)

    @property
    def scoring(self) -> Dict[str, Any]:
        """Priority scoring weights merged over defaults."""
        values = {
            "proximity_cutoff_km": constants.PROXIMITY_CUTOFF_KM,
            "proximity_weight": constants.PROXIMITY_WEIGHT,
            "data_type_weight": constants.DATA_TYPE_WEIGHT,
            "reliability_weight": constants.RELIABILITY_WEIGHT,
            "thresholds": dict(constants.PRIORITY_THRESHOLDS),
        }
        values.update(self.get("scoring", {}))
        # A partial thresholds block only overrides the levels it names
        thresholds = dict(constants.PRIORITY_THRESHOLDS)
        thresholds.update(self.get("scoring.thresholds", None) or {})
        values["thresholds"] = thresholds
        return values

    @property
    def min_per_type(self) -> int:
        return self.get("selection.min_per_type", constants.MIN_STATIONS_PER_TYPE)

    @property
    def max_per_type(self) -> int:
        return self.get("selection.max_per_type", constants.MAX_STATIONS_PER_TYPE)

    @property
    def selection_fraction(self) -> float:
        return self.get("selection.fraction", constants.SELECTION_FRACTION)

    @property
    def quality(self) -> Dict[str, Any]:
        """Data quality weights merged over defaults."""
        values = {
            "expected_total_stations": constants.EXPECTED_TOTAL_STATIONS,
            "success_rate_weight": constants.SUCCESS_RATE_WEIGHT,
            "station_coverage_weight": constants.STATION_COVERAGE_WEIGHT,
            "data_type_coverage_weight": constants.DATA_TYPE_COVERAGE_WEIGHT,
        }
        values.update(self.get("quality", {}))
        return values

    @property
    def registry_path(self) -> str:
        """Get path of the persisted station registry."""
        return self.get("storage.registry_path", constants.DEFAULT_REGISTRY_PATH)

    @property
    def output_dir(self) -> str:
        """Get directory where snapshots are written."""
        return self.get("storage.output_dir", constants.DEFAULT_OUTPUT_DIR)

    @property
    def timezone(self) -> str:
        """Get processing timezone."""
        return self.get("processing.timezone", constants.DEFAULT_TIMEZONE)

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(file={self.config_file}, env={self.get('environment')})"
