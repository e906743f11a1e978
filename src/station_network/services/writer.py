"""
Snapshot writer module.

Persists collection snapshots as JSON files under the output directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.date_utils import DateUtils
from ..models import WeatherSnapshot


LATEST_FILENAME = "latest.json"
STATISTICS_FILENAME = "collection-statistics.json"


class SnapshotWriter:
    """Write snapshots to ``latest.json`` and a dated history tree."""

    def __init__(self, output_dir: Union[str, Path], logger: Optional[logging.Logger] = None):
        """
        Initialize snapshot writer.

        Args:
            output_dir: Directory receiving snapshot files
            logger: Logger instance
        """
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def history_path(self, snapshot: WeatherSnapshot) -> Path:
        """
        Dated path for a snapshot: ``YYYY/MM/DD/HH-MM.json``.

        The date parts come from the snapshot's own timestamp so the file
        lands in the local day of collection.
        """
        taken_at = DateUtils.parse_iso(snapshot.timestamp)
        if taken_at is None:
            raise ValueError(f"Snapshot has no valid timestamp: {snapshot.timestamp!r}")
        return (
            self.output_dir
            / f"{taken_at:%Y}"
            / f"{taken_at:%m}"
            / f"{taken_at:%d}"
            / f"{taken_at:%H-%M}.json"
        )

    def save(self, snapshot: WeatherSnapshot) -> Path:
        """
        Write the snapshot to ``latest.json`` and its history path.

        Args:
            snapshot: Snapshot to persist

        Returns:
            Path of the history file
        """
        payload = json.dumps(snapshot.to_dict(), indent=2)

        history = self.history_path(snapshot)
        history.parent.mkdir(parents=True, exist_ok=True)
        history.write_text(payload, encoding="utf-8")

        latest = self.output_dir / LATEST_FILENAME
        latest.write_text(payload, encoding="utf-8")

        self.logger.info(
            f"Saved snapshot ({len(snapshot.stations_used)} stations, "
            f"quality {snapshot.data_quality_score}) to {history}"
        )
        return history

    def load(self, path: Optional[Union[str, Path]] = None) -> WeatherSnapshot:
        """
        Load a snapshot written by ``save``.

        Args:
            path: Snapshot file; defaults to ``latest.json``

        Returns:
            WeatherSnapshot

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a valid snapshot
        """
        path = Path(path) if path is not None else self.output_dir / LATEST_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return WeatherSnapshot.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError(f"Invalid snapshot file {path}: {e}") from e

    def save_statistics(
        self,
        snapshot: WeatherSnapshot,
        station_statistics: Optional[Dict[str, Any]] = None
    ) -> Path:
        """
        Write ``collection-statistics.json`` for monitoring the last cycle.

        Args:
            snapshot: Snapshot of the cycle
            station_statistics: Registry summary from ``StationRegistry.statistics()``

        Returns:
            Path of the statistics file
        """
        results = snapshot.endpoint_results
        attempts = sum(r.get("attempts", 0) for r in results)
        durations = [r.get("duration_ms", 0) for r in results]

        stats = {
            "timestamp": snapshot.timestamp,
            "collection_duration_ms": snapshot.collection_duration_ms,
            "data_quality_score": snapshot.data_quality_score,
            "geographic_coverage": snapshot.geographic_coverage.to_dict(),
            "api_performance": {
                "total_calls": snapshot.api_calls_total,
                "total_attempts": attempts,
                "success_rate": (
                    round(100 * snapshot.api_calls_succeeded / snapshot.api_calls_total)
                    if snapshot.api_calls_total else 0
                ),
                "average_response_time_ms": (
                    round(sum(durations) / len(durations)) if durations else 0
                ),
            },
            "endpoints": {
                r["data_type"]: {
                    "status": r.get("status"),
                    "attempts": r.get("attempts", 0),
                    "duration_ms": r.get("duration_ms", 0),
                    "error_kind": r.get("error_kind"),
                }
                for r in results
            },
            "stations": station_statistics or {},
        }

        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / STATISTICS_FILENAME
        path.write_text(json.dumps(stats, indent=2), encoding="utf-8")
        self.logger.info(f"Saved collection statistics to {path}")
        return path
