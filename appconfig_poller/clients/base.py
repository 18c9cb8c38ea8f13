"""
Interface to the remote configuration service.

The poller only needs two calls, modelled on AWS AppConfig Data:
- start_session: exchange session parameters for an initial token
- fetch_latest: exchange the current token for (maybe) new configuration
  and the token to use next time

Implementations:
- AppConfigDataClient: wraps a boto3 "appconfigdata" client
- HttpConfigDataClient: talks to the REST API directly with requests
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


@dataclass
class SessionStart:
    """Result of starting a configuration session."""
    initial_token: Optional[str]


@dataclass
class LatestConfiguration:
    """
    Result of one fetch.

    An empty or missing payload means the configuration has not changed
    since the previous fetch with this session.
    """
    payload: Optional[bytes] = None
    next_token: Optional[str] = None
    version_label: Optional[str] = None
    suggested_interval_seconds: Optional[float] = None
    content_type: Optional[str] = None

    @property
    def has_payload(self) -> bool:
        return bool(self.payload)


class ConfigDataClient(Protocol):
    """Anything the poller can start sessions and fetch configuration with."""

    def start_session(self, session_parameters: Dict[str, Any]) -> SessionStart:
        """
        Start a configuration session.

        Args:
            session_parameters: Forwarded verbatim to the service

        Raises:
            Exception: Any transport or permission failure
        """
        ...

    def fetch_latest(self, token: str) -> LatestConfiguration:
        """
        Fetch the latest configuration for a session.

        Args:
            token: Token from start_session or the previous fetch

        Raises:
            Exception: Any transport failure, including an expired token
        """
        ...
