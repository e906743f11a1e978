"""
Base HTTP client for sensor feed endpoints.

Handles session management, per-request timeouts and error classification.
"""

import logging
from typing import Dict, Any, Optional

import requests  # type: ignore
from requests.adapters import HTTPAdapter  # type: ignore
from urllib3.util.retry import Retry  # type: ignore

from ..core import constants
from ..errors import EndpointBadResponse, EndpointTimeout, EndpointTransportError


class APIClient:
    """Base client performing single, classified HTTP attempts."""

    def __init__(
        self,
        timeout: float = constants.DEFAULT_REQUEST_TIMEOUT,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize API client.

        Args:
            timeout: Per-request timeout in seconds
            verify_ssl: Whether to verify SSL certificates
            session: Pre-built session (tests inject a mock here)
            logger: Logger instance
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.logger = logger or logging.getLogger(__name__)

        # Disable SSL warnings when verify_ssl is False
        if not verify_ssl:
            import urllib3
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        if session is None:
            session = requests.Session()
            # Retries are owned by RetryPolicy; the transport must not retry on its own
            adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

        self.session.headers.update({
            "User-Agent": constants.USER_AGENT,
            "Accept": "application/json",
            "Cache-Control": "no-cache"
        })

    def _make_request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make one HTTP request.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Additional arguments for requests

        Returns:
            Response object with a 2xx status

        Raises:
            EndpointTimeout: The request timed out
            EndpointTransportError: Connection or other transport failure
            EndpointBadResponse: Non-2xx status
        """
        kwargs.setdefault("verify", self.verify_ssl)
        self.logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.Timeout as e:
            raise EndpointTimeout(f"Timed out after {self.timeout}s: {e}", url=url) from e
        except requests.exceptions.RequestException as e:
            raise EndpointTransportError(f"Transport error: {e}", url=url) from e

        if not 200 <= response.status_code < 300:
            raise EndpointBadResponse(
                f"HTTP {response.status_code}: {response.reason}",
                url=url,
                status_code=response.status_code
            )
        return response

    def get_json(self, url: str, params: Optional[Dict] = None) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            EndpointBadResponse: Body is not valid JSON
        """
        response = self._make_request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise EndpointBadResponse(f"Unparseable JSON body: {e}", url=url) from e

    def close(self) -> None:
        """Close the session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
