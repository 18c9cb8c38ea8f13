"""
HTTP client for services exposing the AppConfig Data REST API.

Endpoints:
- POST {base_url}/configurationsessions     -> {"InitialConfigurationToken": ...}
- GET  {base_url}/configuration?configuration_token=...
      body: configuration payload (empty when unchanged)
      headers: Next-Poll-Configuration-Token, Next-Poll-Interval-In-Seconds,
               Version-Label, Content-Type

Throttling (429) and 5xx responses are retried a few times with
exponential backoff; anything else is raised for the poller to handle.
Request signing and credentials are out of scope: pass a requests auth
object or extra headers if the endpoint needs them.
"""
import logging
from typing import Any, Dict, Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from .base import LatestConfiguration, SessionStart

logger = logging.getLogger("appconfig_poller.clients.http")

DEFAULT_TIMEOUT_SECONDS = 10.0
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RetryableHTTPError(requests.HTTPError):
    """The service is throttling or temporarily failing."""


def _safe_float(value: Optional[str]) -> Optional[float]:
    """Parse a numeric header, ignoring garbage."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        logger.warning(f"Ignoring non-numeric poll interval header: {value!r}")
        return None


class HttpConfigDataClient:
    """ConfigDataClient that speaks to the REST API with requests."""

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        auth: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Args:
            base_url: Service root, e.g. "https://appconfigdata.us-east-1.amazonaws.com"
            session: Shared requests session (one is created if omitted)
            auth: Any requests-compatible auth object
            headers: Extra headers sent with every request
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._auth = auth
        self._headers = headers or {}
        self._timeout = timeout

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(RetryableHTTPError),
        reraise=True,
    )
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Make a request, retrying throttling and server errors.

        Raises:
            requests.HTTPError: Any other error status, or a retryable one
                that persisted through every attempt
        """
        response = self._session.request(
            method,
            f"{self.base_url}{path}",
            headers=self._headers,
            auth=self._auth,
            timeout=self._timeout,
            **kwargs,
        )
        if response.status_code in RETRYABLE_STATUS_CODES:
            logger.warning(f"{method} {path} returned {response.status_code}, retrying")
            raise RetryableHTTPError(
                f"{response.status_code} from {method} {path}", response=response
            )
        response.raise_for_status()
        return response

    def start_session(self, session_parameters: Dict[str, Any]) -> SessionStart:
        response = self._send("POST", "/configurationsessions", json=session_parameters)
        data = response.json() or {}
        return SessionStart(initial_token=data.get("InitialConfigurationToken"))

    def fetch_latest(self, token: str) -> LatestConfiguration:
        response = self._send("GET", "/configuration", params={"configuration_token": token})
        headers = response.headers
        return LatestConfiguration(
            payload=response.content or None,
            next_token=headers.get("Next-Poll-Configuration-Token"),
            version_label=headers.get("Version-Label"),
            suggested_interval_seconds=_safe_float(headers.get("Next-Poll-Interval-In-Seconds")),
            content_type=headers.get("Content-Type"),
        )

    def close(self) -> None:
        self._session.close()
