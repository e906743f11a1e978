"""
Station Network Collector

This package discovers environmental sensor stations from live feeds,
scores them by proximity and reliability, selects the best stations per
data type and aggregates their readings into quality-scored snapshots.
"""

__version__ = "0.1.0"
__description__ = "Station discovery, scoring and aggregation for environment sensor feeds"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name == "StationNetworkApp":
        from .main import StationNetworkApp
        return StationNetworkApp
    if name == "CollectionEngine":
        from .engine import CollectionEngine
        return CollectionEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "StationNetworkApp",
    "CollectionEngine",
]
