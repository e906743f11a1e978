"""
API layer for environment sensor feeds.

Provides the HTTP client, feed parsing and the retry helper.
"""

import logging
from typing import Optional

import requests  # type: ignore

from .client import APIClient
from .feeds import FeedsAPI, FeedPayload, StationMetadata, parse_feed
from .retry import RetryPolicy


class FeedClient(APIClient, FeedsAPI):
    """
    Unified client for environment feeds.

    Combines single-attempt HTTP handling with feed payload parsing.
    """

    def __init__(
        self,
        timeout: float = 12,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__(
            timeout=timeout,
            verify_ssl=verify_ssl,
            session=session,
            logger=logger
        )


__all__ = [
    "APIClient",
    "FeedsAPI",
    "FeedClient",
    "FeedPayload",
    "StationMetadata",
    "parse_feed",
    "RetryPolicy",
]
