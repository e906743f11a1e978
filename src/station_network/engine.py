"""
Collection engine.

Runs one collection cycle: fetch every endpoint, resolve coordinates,
score and select stations, and build the snapshot.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Set

import requests  # type: ignore

from .algorithms import PriorityScorer
from .core import Config, DateUtils, LoggerContext
from .models import EndpointOutcome, WeatherSnapshot
from .processing import QualityScorer, SnapshotAggregator, SnapshotBuilder
from .services import CoordinateResolver, FetchOrchestrator, StationRegistry, StationSelector


class CollectionEngine:
    """Drive fetch, discovery, scoring, selection and aggregation."""

    def __init__(
        self,
        config: Config,
        registry: Optional[StationRegistry] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize collection engine.

        Args:
            config: Configuration instance
            registry: Station registry carried across cycles; a fresh one if None
            session: Optional requests session (shared or mocked)
            logger: Logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.registry = registry if registry is not None else StationRegistry(self.logger)
        self.date_utils = DateUtils(config.timezone, self.logger)

        self.resolver = CoordinateResolver(logger=self.logger)
        self.fetcher = FetchOrchestrator.from_config(
            config,
            registry=self.registry,
            resolver=self.resolver,
            session=session,
            logger=self.logger,
        )
        self.scorer = PriorityScorer.from_config(config, self.logger)
        self.selector = StationSelector(
            min_per_type=config.min_per_type,
            max_per_type=config.max_per_type,
            fraction=config.selection_fraction,
            resolver=self.resolver,
            logger=self.logger,
        )
        self.builder = SnapshotBuilder(
            quality_scorer=QualityScorer.from_config(config, self.logger),
            aggregator=SnapshotAggregator(self.logger),
            date_utils=self.date_utils,
            logger=self.logger,
        )

    def collect(self, cancel_event: Optional[threading.Event] = None) -> WeatherSnapshot:
        """
        Run one collection cycle.

        Per-endpoint failures are reported in the snapshot and never raised.
        When every endpoint fails the snapshot has no readings and a
        quality score of 0.

        Args:
            cancel_event: Cooperative cancellation token; endpoints not yet
                fetched when it is set are reported as cancelled

        Returns:
            WeatherSnapshot for this cycle
        """
        started = time.monotonic()
        endpoints = self.config.endpoints

        with LoggerContext(self.logger, f"fetching {len(endpoints)} endpoints"):
            outcomes = self.fetcher.fetch_all(endpoints, cancel_event)

        with LoggerContext(self.logger, "coordinate resolution"):
            self.resolver.resolve_registry(self.registry)

        with LoggerContext(self.logger, "station scoring"):
            self.scorer.score_all(self.registry.stations())

        fulfilled_types = [o.data_type for o in outcomes if o.is_fulfilled]
        with LoggerContext(self.logger, "station selection"):
            selection = self.selector.select(
                self.registry,
                fulfilled_types,
                active_ids=self.active_ids(outcomes),
            )

        snapshot = self.builder.build(
            outcomes,
            selection,
            self.registry,
            collection_duration_ms=int((time.monotonic() - started) * 1000),
            resolver=self.resolver,
        )

        self.logger.info(
            f"Collection complete: {snapshot.api_calls_succeeded}/{snapshot.api_calls_total} "
            f"endpoints, {len(snapshot.stations_used)} stations, "
            f"quality {snapshot.data_quality_score}"
        )
        return snapshot

    @staticmethod
    def active_ids(outcomes: List[EndpointOutcome]) -> Dict[str, Set[str]]:
        """Station ids that reported in this cycle, per fulfilled data type."""
        return {
            outcome.data_type: {r.station_id for r in outcome.readings}
            for outcome in outcomes
            if outcome.is_fulfilled
        }

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.fetcher.client.close()
