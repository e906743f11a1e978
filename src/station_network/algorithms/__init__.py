"""
Algorithms for the station network collector.

Geographic math and station priority scoring.
"""

from .geo import distance_km, determine_region, clamp_to_bounds
from .priority import PriorityScorer, ScoreBreakdown

__all__ = [
    "distance_km",
    "determine_region",
    "clamp_to_bounds",
    "PriorityScorer",
    "ScoreBreakdown",
]
