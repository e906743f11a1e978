"""
Station registry service.

Owns the catalog of every station seen in any feed, keyed by station id.
The registry is created by the application and handed to each component;
it can be persisted to JSON and reloaded on the next run to warm-start
discovery.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import pytz

from ..core import constants
from ..core.date_utils import DateUtils
from ..models import (
    Coordinates,
    Reading,
    Station,
    STATUS_ACTIVE,
    STATUS_INACTIVE,
)


class StationRegistry:
    """Thread-safe catalog of stations with upsert-by-id semantics."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize an empty registry.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self._stations: Dict[str, Station] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._stations)

    def __contains__(self, station_id: object) -> bool:
        with self._lock:
            return station_id in self._stations

    def __iter__(self) -> Iterator[Station]:
        return iter(self.stations())

    def get(self, station_id: str) -> Optional[Station]:
        with self._lock:
            return self._stations.get(station_id)

    def stations(self) -> List[Station]:
        """Snapshot list of all stations, ordered by id."""
        with self._lock:
            return [self._stations[key] for key in sorted(self._stations)]

    def stations_for(self, data_type: str) -> List[Station]:
        """All stations that have reported ``data_type``, ordered by id."""
        with self._lock:
            return [
                self._stations[key]
                for key in sorted(self._stations)
                if data_type in self._stations[key].data_types
            ]

    def data_types(self) -> List[str]:
        with self._lock:
            return sorted({dt for s in self._stations.values() for dt in s.data_types})

    def observe(
        self,
        data_type: str,
        readings: Iterable[Reading],
        seen_at: Optional[str] = None
    ) -> int:
        """
        Absorb the readings of one successful fetch.

        Creates stations on first sighting, adds the data type, bumps the
        readings counter and last-seen time and marks the station active.

        Args:
            data_type: Data type the readings belong to
            readings: Readings from the feed
            seen_at: ISO timestamp of the observation (defaults to now, UTC)

        Returns:
            Number of stations created by this call
        """
        seen_at = seen_at or datetime.now(pytz.UTC).isoformat()
        created = 0

        with self._lock:
            for reading in readings:
                station = self._stations.get(reading.station_id)
                if station is None:
                    station = Station(
                        id=reading.station_id,
                        first_seen=seen_at,
                        reliability_score=constants.DEFAULT_RELIABILITY,
                    )
                    self._stations[reading.station_id] = station
                    created += 1
                    self.logger.debug(f"Discovered station {reading.station_id} via {data_type}")

                if station.add_data_type(data_type):
                    self.logger.debug(f"Station {station.id} now reports {data_type}")
                station.readings_count += 1
                station.last_seen = seen_at
                station.status = STATUS_ACTIVE

        if created:
            self.logger.info(f"Discovered {created} new {data_type} stations")
        return created

    def mark_inactive(self, data_type: str) -> int:
        """
        Flag every station of a data type as inactive after its feed failed.

        Returns:
            Number of stations flagged
        """
        count = 0
        with self._lock:
            for station in self._stations.values():
                if data_type in station.data_types:
                    station.status = STATUS_INACTIVE
                    count += 1
        if count:
            self.logger.warning(f"Marked {count} {data_type} stations inactive")
        return count

    def set_coordinates(self, station_id: str, coordinates: Coordinates) -> bool:
        """
        Set a station's coordinates unless that would replace a known
        position with an estimate.

        Returns:
            True if the coordinates were changed
        """
        with self._lock:
            station = self._stations.get(station_id)
            if station is None:
                return False
            current = station.coordinates
            if current is not None and current.is_known and not coordinates.is_known:
                return False
            if current == coordinates:
                return False
            station.coordinates = coordinates
            return True

    def set_reliability(self, station_id: str, reliability_score: float) -> None:
        """Accept an externally computed reliability score in [0, 1]."""
        if not 0.0 <= reliability_score <= 1.0:
            raise ValueError(f"reliability_score must be within [0, 1], got {reliability_score}")
        with self._lock:
            station = self._stations.get(station_id)
            if station is None:
                raise KeyError(station_id)
            station.reliability_score = reliability_score

    def merge(self, stations: Iterable[Station]) -> int:
        """
        Merge stations from another source (usually a persisted registry).

        Data types are unioned, counters take the larger value, first/last
        seen take the earliest/latest time and known coordinates win over
        estimated ones. Stations not yet present are added as-is.

        Returns:
            Number of stations added
        """
        added = 0
        with self._lock:
            for incoming in stations:
                existing = self._stations.get(incoming.id)
                if existing is None:
                    self._stations[incoming.id] = incoming
                    added += 1
                    continue

                for data_type in incoming.data_types:
                    existing.add_data_type(data_type)
                existing.readings_count = max(existing.readings_count, incoming.readings_count)
                existing.first_seen = _pick_time(existing.first_seen, incoming.first_seen, earliest=True)
                existing.last_seen = _pick_time(existing.last_seen, incoming.last_seen, earliest=False)
                current = existing.coordinates
                if incoming.coordinates is not None and (current is None or not current.is_known):
                    self.set_coordinates(existing.id, incoming.coordinates)
        return added

    def statistics(self) -> Dict[str, Any]:
        """Station counts per data type, priority level and coordinate source."""
        stats: Dict[str, Any] = {
            "total_stations": 0,
            "data_types": {},
            "priority_levels": {},
            "coordinate_sources": {},
        }
        for station in self.stations():
            stats["total_stations"] += 1
            for data_type in station.data_types:
                stats["data_types"][data_type] = stats["data_types"].get(data_type, 0) + 1
            level = station.priority_level
            stats["priority_levels"][level] = stats["priority_levels"].get(level, 0) + 1
            source = station.coordinates.source if station.coordinates else "unknown"
            stats["coordinate_sources"][source] = stats["coordinate_sources"].get(source, 0) + 1
        return stats

    def to_dict(self) -> Dict[str, Any]:
        stations = sorted(self.stations(), key=lambda s: (-s.priority_score, s.id))
        return {
            "metadata": {
                "version": constants.REGISTRY_FORMAT_VERSION,
                "generated_at": datetime.now(pytz.UTC).isoformat(),
                "total_stations": len(stations),
            },
            "statistics": self.statistics(),
            "stations": [station.to_dict() for station in stations],
        }

    def save(self, path: str) -> Path:
        """
        Write the registry to a JSON file.

        Args:
            path: Destination file; parent directories are created

        Returns:
            Path written
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.to_dict()

        # Write then rename so a crash never leaves a truncated registry
        tmp = target.with_suffix(target.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(target)

        self.logger.info(f"Saved {data['metadata']['total_stations']} stations to {target}")
        return target

    def load(self, path: str) -> int:
        """
        Merge a persisted registry file into this registry.

        Args:
            path: JSON file written by save()

        Returns:
            Number of stations added

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a registry document
        """
        source = Path(path)
        if not source.exists():
            raise FileNotFoundError(f"Station registry not found: {path}")

        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, list):
            raw_stations = data
        elif isinstance(data, dict) and isinstance(data.get("stations"), list):
            raw_stations = data["stations"]
        else:
            raise ValueError(f"Not a station registry document: {path}")

        stations = []
        for index, raw in enumerate(raw_stations):
            try:
                if not isinstance(raw, dict):
                    raise TypeError(f"expected an object, got {type(raw).__name__}")
                stations.append(Station.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(f"Skipping malformed registry record {index} in {source}: {e!r}")

        added = self.merge(stations)
        self.logger.info(
            f"Loaded {len(stations)} stations from {source} ({added} new, "
            f"{len(raw_stations) - len(stations)} skipped)"
        )
        return added


def _pick_time(current: Optional[str], other: Optional[str], earliest: bool) -> Optional[str]:
    if not current:
        return other
    if not other:
        return current
    a = DateUtils.parse_iso(current)
    b = DateUtils.parse_iso(other)
    if earliest:
        return current if a <= b else other
    return current if a >= b else other
