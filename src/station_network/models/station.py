"""
Station data models.

Contains DTOs for stations, their coordinates and reference locations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


SOURCE_KNOWN = "known"
SOURCE_ESTIMATED = "estimated"

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"


@dataclass
class Coordinates:
    """Resolved position of a station."""

    lat: float
    lng: float
    name: str
    source: str = SOURCE_KNOWN

    @property
    def is_known(self) -> bool:
        return self.source == SOURCE_KNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {"lat": self.lat, "lng": self.lng, "name": self.name, "source": self.source}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinates":
        return cls(
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            name=data.get("name", ""),
            source=data.get("source", SOURCE_KNOWN),
        )


@dataclass
class Proximity:
    """Distance from a station to one reference location."""

    distance_km: float
    location_name: str
    priority: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_km": self.distance_km,
            "location_name": self.location_name,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proximity":
        return cls(
            distance_km=float(data["distance_km"]),
            location_name=data.get("location_name", ""),
            priority=data.get("priority", ""),
        )


@dataclass(frozen=True)
class ReferenceLocation:
    """Fixed point of interest used as a proximity scoring anchor."""

    key: str
    name: str
    lat: float
    lng: float
    priority: str = "tertiary"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceLocation":
        return cls(
            key=data["key"],
            name=data.get("name", data["key"]),
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            priority=data.get("priority", "tertiary"),
        )


@dataclass
class Station:
    """
    One physical sensor location.

    ``data_types`` only grows, and ``coordinates`` never moves from a known
    position back to an estimated one. The registry enforces both rules.
    """

    id: str
    data_types: List[str] = field(default_factory=list)
    coordinates: Optional[Coordinates] = None
    readings_count: int = 0
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None
    reliability_score: float = 1.0
    status: str = STATUS_ACTIVE
    proximities: Dict[str, Proximity] = field(default_factory=dict)
    nearest_key_location: Optional[str] = None
    priority_score: float = 0.0
    priority_level: str = "low"

    @property
    def name(self) -> str:
        if self.coordinates and self.coordinates.name:
            return self.coordinates.name
        return f"Station {self.id}"

    def add_data_type(self, data_type: str) -> bool:
        """Add a data type; returns True if it was new."""
        if data_type in self.data_types:
            return False
        self.data_types.append(data_type)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "station_id": self.id,
            "data_types": list(self.data_types),
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "readings_count": self.readings_count,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "reliability_score": self.reliability_score,
            "status": self.status,
            "proximities": {key: p.to_dict() for key, p in self.proximities.items()},
            "nearest_key_location": self.nearest_key_location,
            "priority_score": self.priority_score,
            "priority_level": self.priority_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Station":
        coordinates = data.get("coordinates")
        return cls(
            id=data["station_id"],
            data_types=list(data.get("data_types") or []),
            coordinates=Coordinates.from_dict(coordinates) if coordinates else None,
            readings_count=int(data.get("readings_count", 0)),
            first_seen=data.get("first_seen"),
            last_seen=data.get("last_seen"),
            reliability_score=float(data.get("reliability_score", 1.0)),
            status=data.get("status", STATUS_ACTIVE),
            proximities={
                key: Proximity.from_dict(p)
                for key, p in (data.get("proximities") or {}).items()
            },
            nearest_key_location=data.get("nearest_key_location"),
            priority_score=float(data.get("priority_score", 0.0)),
            priority_level=data.get("priority_level", "low"),
        )
