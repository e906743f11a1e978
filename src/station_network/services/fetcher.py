"""
Fetch orchestration service.

Fetches every data-type endpoint independently. Each endpoint is retried
with backoff on its own, and its result is settled into an EndpointOutcome
so that one failing feed never aborts the others. Station discovery is a
side effect of every successful fetch.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, TYPE_CHECKING

from ..api import FeedClient, FeedPayload, RetryPolicy
from ..core.date_utils import DateUtils
from ..errors import FetchCancelled, FetchError
from ..models import EndpointOutcome

if TYPE_CHECKING:
    from .coordinate_resolver import CoordinateResolver
    from .registry import StationRegistry
    from ..core.config import Config


class FetchOrchestrator:
    """Fetch data-type endpoints with retry, isolation and discovery."""

    def __init__(
        self,
        client: FeedClient,
        registry: "StationRegistry",
        resolver: Optional["CoordinateResolver"] = None,
        retry_policy: Optional[RetryPolicy] = None,
        inter_call_delay: float = 0.0,
        max_concurrent: int = 1,
        date_utils: Optional[DateUtils] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize fetch orchestrator.

        Args:
            client: Feed client performing single HTTP attempts
            registry: Registry that absorbs stations seen in successful fetches
            resolver: Resolver that learns positions published by feeds
            retry_policy: Retry schedule for timeouts and transport errors
            inter_call_delay: Politeness delay between sequential calls (seconds)
            max_concurrent: Endpoints fetched in parallel; 1 means sequential
            date_utils: Timestamp helper
            logger: Logger instance
        """
        self.client = client
        self.registry = registry
        self.resolver = resolver
        self.retry_policy = retry_policy or RetryPolicy()
        self.inter_call_delay = inter_call_delay
        self.max_concurrent = max(1, max_concurrent)
        self.date_utils = date_utils or DateUtils()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: "Config",
        registry: "StationRegistry",
        resolver: Optional["CoordinateResolver"] = None,
        session=None,
        logger: Optional[logging.Logger] = None
    ) -> "FetchOrchestrator":
        """Build an orchestrator and its client from a Config instance."""
        client = FeedClient(
            timeout=config.request_timeout,
            verify_ssl=config.verify_ssl,
            session=session,
            logger=logger,
        )
        retry_policy = RetryPolicy(
            max_attempts=config.max_attempts,
            base_delay=config.backoff_base,
            jitter_max=config.backoff_jitter,
            logger=logger,
        )
        return cls(
            client=client,
            registry=registry,
            resolver=resolver,
            retry_policy=retry_policy,
            inter_call_delay=config.inter_call_delay,
            max_concurrent=config.max_concurrent,
            date_utils=DateUtils(config.timezone, logger),
            logger=logger,
        )

    @property
    def max_seconds_per_endpoint(self) -> float:
        """Hard ceiling on time spent on one endpoint across all retries."""
        return self.retry_policy.max_total_seconds(self.client.timeout)

    def fetch(
        self,
        data_type: str,
        endpoint: str,
        cancel_event: Optional[threading.Event] = None
    ) -> EndpointOutcome:
        """
        Fetch one endpoint and settle the result.

        On success the readings are absorbed into the registry (and feed
        station positions into the resolver) before the outcome is returned.
        Never raises for fetch errors.

        Args:
            data_type: Data type name
            endpoint: Endpoint URL
            cancel_event: Cooperative cancellation token

        Returns:
            Fulfilled or rejected outcome
        """
        started = time.monotonic()
        self.logger.info(f"Collecting {data_type} data")

        try:
            payload, attempts = self.retry_policy.call(
                lambda: self.client.get_feed(endpoint, data_type=data_type),
                description=f"{data_type} fetch",
                cancel_event=cancel_event,
            )
        except FetchError as e:
            e.data_type = e.data_type or data_type
            e.url = e.url or endpoint
            self.logger.error(f"Failed to collect {data_type}: {e}")
            if not isinstance(e, FetchCancelled):
                self.registry.mark_inactive(data_type)
            return EndpointOutcome.failed(
                data_type,
                endpoint,
                e,
                attempts=e.attempts,
                duration_ms=_elapsed_ms(started),
            )

        self._absorb(data_type, payload)
        self.logger.info(
            f"Collected {len(payload.readings)} {data_type} readings "
            f"in {attempts} attempt(s)"
        )
        return EndpointOutcome.ok(
            data_type,
            endpoint,
            payload.readings,
            attempts=attempts,
            duration_ms=_elapsed_ms(started),
        )

    def _absorb(self, data_type: str, payload: FeedPayload) -> None:
        if self.resolver is not None:
            for meta in payload.stations:
                self.resolver.learn(meta.station_id, meta.lat, meta.lng, meta.name)
        self.registry.observe(data_type, payload.readings, seen_at=self.date_utils.to_iso())

    def fetch_all(
        self,
        endpoints: Dict[str, str],
        cancel_event: Optional[threading.Event] = None
    ) -> List[EndpointOutcome]:
        """
        Fetch every endpoint, sequentially or with bounded concurrency.

        Endpoints that were not fetched because the run was cancelled are
        reported as rejected with FetchCancelled; finished outcomes are kept.

        Args:
            endpoints: Data type name to endpoint URL
            cancel_event: Cooperative cancellation token

        Returns:
            One outcome per endpoint, in the order of ``endpoints``
        """
        if self.max_concurrent > 1 and len(endpoints) > 1:
            return self._fetch_concurrent(endpoints, cancel_event)
        return self._fetch_sequential(endpoints, cancel_event)

    def _fetch_sequential(
        self,
        endpoints: Dict[str, str],
        cancel_event: Optional[threading.Event]
    ) -> List[EndpointOutcome]:
        outcomes: List[EndpointOutcome] = []
        items = list(endpoints.items())

        for index, (data_type, endpoint) in enumerate(items):
            if cancel_event is not None and cancel_event.is_set():
                outcomes.append(self._cancelled(data_type, endpoint))
                continue

            outcomes.append(self.fetch(data_type, endpoint, cancel_event))

            # Rate limiting between API calls
            if index < len(items) - 1 and self.inter_call_delay > 0:
                if cancel_event is not None:
                    cancel_event.wait(self.inter_call_delay)
                else:
                    time.sleep(self.inter_call_delay)

        return outcomes

    def _fetch_concurrent(
        self,
        endpoints: Dict[str, str],
        cancel_event: Optional[threading.Event]
    ) -> List[EndpointOutcome]:
        def run(data_type: str, endpoint: str) -> EndpointOutcome:
            if cancel_event is not None and cancel_event.is_set():
                return self._cancelled(data_type, endpoint)
            return self.fetch(data_type, endpoint, cancel_event)

        with ThreadPoolExecutor(max_workers=self.max_concurrent) as executor:
            futures = [
                executor.submit(run, data_type, endpoint)
                for data_type, endpoint in endpoints.items()
            ]
            return [future.result() for future in futures]

    def _cancelled(self, data_type: str, endpoint: str) -> EndpointOutcome:
        self.logger.warning(f"Skipping {data_type}: collection cancelled")
        error = FetchCancelled("Collection cancelled", data_type=data_type, url=endpoint)
        return EndpointOutcome.failed(data_type, endpoint, error)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
