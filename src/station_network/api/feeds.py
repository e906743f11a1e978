"""
Feed operations for environment reading endpoints.

Parses the readings payload served by each data-type endpoint.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..errors import EndpointBadResponse
from ..models import Reading


@dataclass
class StationMetadata:
    """Position a feed publishes for one of its stations."""

    station_id: str
    name: str
    lat: float
    lng: float


@dataclass
class FeedPayload:
    """Parsed content of one feed response."""

    readings: List[Reading] = field(default_factory=list)
    stations: List[StationMetadata] = field(default_factory=list)
    timestamp: Optional[str] = None


class FeedsAPI:
    """Mixin for reading feed operations."""

    logger: logging.Logger
    # Provided by APIClient
    get_json: Callable[..., Any]

    def get_feed(self, url: str, data_type: Optional[str] = None) -> FeedPayload:
        """
        Fetch and parse one feed.

        Args:
            url: Endpoint URL
            data_type: Data type name, used for error context

        Returns:
            Parsed feed payload

        Raises:
            FetchError: Classified HTTP or payload error
        """
        body = self.get_json(url)
        return parse_feed(body, data_type=data_type, url=url, logger=self.logger)


def parse_feed(
    body: Any,
    data_type: Optional[str] = None,
    url: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> FeedPayload:
    """
    Parse a readings payload.

    Expected format:
    {
        "metadata": {"stations": [{"id": "S109", "name": "...",
                                   "location": {"latitude": 1.37, "longitude": 103.84}}]},
        "items": [{"timestamp": "...", "readings": [{"station_id": "S109", "value": 29.1}]}]
    }

    Only the first (latest) item is used. Readings with a non-numeric value
    are dropped. Feeds whose readings are not a list (regional feeds) yield
    no station readings.

    Raises:
        EndpointBadResponse: Body is not an object or has no items
    """
    logger = logger or logging.getLogger(__name__)

    if not isinstance(body, dict) or not isinstance(body.get("items"), list):
        raise EndpointBadResponse("Payload has no 'items' list", data_type=data_type, url=url)

    payload = FeedPayload(stations=_parse_station_metadata(body.get("metadata")))

    if not body["items"]:
        logger.warning(f"{data_type} feed returned no items")
        return payload

    latest = body["items"][0]
    if not isinstance(latest, dict):
        raise EndpointBadResponse("Latest item is not an object", data_type=data_type, url=url)

    payload.timestamp = latest.get("timestamp")
    raw_readings = latest.get("readings")

    if not isinstance(raw_readings, list):
        logger.warning(f"{data_type} feed has no per-station readings, skipping")
        return payload

    for raw in raw_readings:
        if not isinstance(raw, dict):
            continue
        station_id = raw.get("station_id")
        value = raw.get("value")
        if not station_id or isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.debug(f"Dropping malformed {data_type} reading: {raw}")
            continue
        payload.readings.append(
            Reading(station_id=str(station_id), value=float(value), timestamp=payload.timestamp)
        )

    return payload


def _parse_station_metadata(metadata: Any) -> List[StationMetadata]:
    if not isinstance(metadata, dict):
        return []

    stations = []
    for raw in metadata.get("stations") or []:
        if not isinstance(raw, dict) or not isinstance(raw.get("location"), dict):
            continue
        station_id = raw.get("id") or raw.get("device_id")
        if station_id is None:
            continue
        try:
            lat = float(raw["location"]["latitude"])
            lng = float(raw["location"]["longitude"])
        except (KeyError, TypeError, ValueError):
            continue
        stations.append(StationMetadata(
            station_id=str(station_id),
            name=raw.get("name") or f"Station {station_id}",
            lat=lat,
            lng=lng,
        ))
    return stations
