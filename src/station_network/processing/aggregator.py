"""
Reading aggregation module.

Summarizes the selected readings of one data type.
"""

import logging
import statistics
from typing import Iterable, List, Optional, Set

from ..models import DataTypeSummary, Reading


class SnapshotAggregator:
    """Calculate per data type summaries from readings."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize aggregator.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def filter_selected(
        readings: Iterable[Reading],
        selected_ids: Optional[Set[str]]
    ) -> List[Reading]:
        """
        Keep readings from selected stations.

        With no selection at all every reading is kept.
        """
        readings = list(readings)
        if not selected_ids:
            return readings
        return [r for r in readings if r.station_id in selected_ids]

    def summarize(self, data_type: str, readings: Iterable[Reading]) -> DataTypeSummary:
        """
        Summarize readings into count, average, min and max.

        The average is rounded to 2 decimals. With no readings only the
        count (0) is reported; min, max and average stay None.

        Args:
            data_type: Data type name, for logging
            readings: Readings to summarize

        Returns:
            DataTypeSummary
        """
        readings = tuple(readings)
        if not readings:
            self.logger.warning(f"No {data_type} readings from selected stations")
            return DataTypeSummary(readings=(), count=0)

        values = [r.value for r in readings]
        summary = DataTypeSummary(
            readings=readings,
            count=len(values),
            average=round(statistics.mean(values), 2),
            min=min(values),
            max=max(values),
        )
        self.logger.debug(
            f"{data_type}: count={summary.count}, avg={summary.average}, "
            f"min={summary.min}, max={summary.max}"
        )
        return summary
