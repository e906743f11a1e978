"""
Retry helper with exponential backoff and jitter.

Independent of any endpoint: it retries a callable whenever it raises a
FetchError whose ``retryable`` flag is set.
"""

import logging
import random
import threading
import time
from typing import Callable, Optional, Tuple, TypeVar

from ..errors import FetchCancelled, FetchError

T = TypeVar("T")


class RetryPolicy:
    """Retry schedule: ``delay(n) = base_delay * 2**n + uniform(0, jitter_max)``."""

    def __init__(
        self,
        max_attempts: int = 2,
        base_delay: float = 1.0,
        jitter_max: float = 0.5,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Total attempts including the first one
            base_delay: Base backoff delay in seconds
            jitter_max: Upper bound of the random jitter added to each delay
            rng: Random source for jitter (seed it for reproducible tests)
            logger: Logger instance
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.jitter_max = jitter_max
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def delay(self, retry_index: int) -> float:
        """Backoff before retry number ``retry_index`` (0-based)."""
        jitter = self.rng.uniform(0, self.jitter_max) if self.jitter_max > 0 else 0.0
        return self.base_delay * (2 ** retry_index) + jitter

    def max_total_seconds(self, attempt_timeout: float) -> float:
        """
        Upper bound on wall time spent by one call() including all retries.

        Args:
            attempt_timeout: Per-attempt request timeout in seconds

        Returns:
            max_attempts * attempt_timeout plus every backoff at full jitter
        """
        backoff = sum(
            self.base_delay * (2 ** n) + self.jitter_max
            for n in range(self.max_attempts - 1)
        )
        return self.max_attempts * attempt_timeout + backoff

    def call(
        self,
        func: Callable[[], T],
        description: str = "request",
        cancel_event: Optional[threading.Event] = None
    ) -> Tuple[T, int]:
        """
        Run ``func`` until it succeeds, raises a non-retryable error or
        attempts run out.

        Args:
            func: Zero-argument callable performing one attempt
            description: Label used in log messages
            cancel_event: Set to abort between attempts or during a backoff wait

        Returns:
            Tuple of (result, attempts used)

        Raises:
            FetchError: The last error once attempts are exhausted, the first
                non-retryable error, or FetchCancelled
        """
        for attempt in range(self.max_attempts):
            if cancel_event is not None and cancel_event.is_set():
                raise FetchCancelled(f"{description} cancelled before attempt {attempt + 1}")

            try:
                return func(), attempt + 1
            except FetchError as e:
                # Attach the attempt count so callers can report it on failure
                e.attempts = attempt + 1
                if not e.retryable:
                    raise
                if attempt == self.max_attempts - 1:
                    self.logger.warning(
                        f"{description} failed after {self.max_attempts} attempts: {e}"
                    )
                    raise

                wait = self.delay(attempt)
                self.logger.warning(
                    f"{description} attempt {attempt + 1}/{self.max_attempts} failed: {e}. "
                    f"Retrying in {wait:.2f}s"
                )
                if cancel_event is not None:
                    if cancel_event.wait(wait):
                        cancelled = FetchCancelled(f"{description} cancelled during backoff")
                        cancelled.attempts = attempt + 1
                        raise cancelled
                elif wait > 0:
                    time.sleep(wait)

        raise AssertionError("unreachable")  # pragma: no cover
