"""
Reading and fetch outcome models.

Contains DTOs for single feed readings and per-endpoint fetch results.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


FULFILLED = "fulfilled"
REJECTED = "rejected"


@dataclass(frozen=True)
class Reading:
    """One station reading for one data type."""

    station_id: str
    value: float
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"station_id": self.station_id, "value": self.value, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reading":
        return cls(
            station_id=data["station_id"],
            value=float(data["value"]),
            timestamp=data.get("timestamp"),
        )


@dataclass
class EndpointOutcome:
    """
    Settled result of fetching one data-type endpoint.

    Either ``fulfilled`` with readings or ``rejected`` with the classified
    error. Aggregation only looks at fulfilled outcomes.
    """

    data_type: str
    endpoint: str
    status: str
    readings: List[Reading] = field(default_factory=list)
    error: Optional[Exception] = None
    attempts: int = 0
    duration_ms: int = 0

    @classmethod
    def ok(cls, data_type: str, endpoint: str, readings: List[Reading], **kwargs) -> "EndpointOutcome":
        return cls(data_type=data_type, endpoint=endpoint, status=FULFILLED, readings=readings, **kwargs)

    @classmethod
    def failed(cls, data_type: str, endpoint: str, error: Exception, **kwargs) -> "EndpointOutcome":
        return cls(data_type=data_type, endpoint=endpoint, status=REJECTED, error=error, **kwargs)

    @property
    def is_fulfilled(self) -> bool:
        return self.status == FULFILLED

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "data_type": self.data_type,
            "endpoint": self.endpoint,
            "status": self.status,
            "attempts": self.attempts,
            "duration_ms": self.duration_ms,
            "readings_count": len(self.readings),
        }
        if self.error is not None:
            result["error_kind"] = type(self.error).__name__
            result["error"] = str(self.error)
        return result
