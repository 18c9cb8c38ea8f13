"""
Ownership of the configuration session token.
"""
import logging
from typing import Any, Dict, Optional

from .clients.base import ConfigDataClient
from .errors import SessionError

logger = logging.getLogger("appconfig_poller.session")

MISSING_TOKEN_MESSAGE = (
    "Missing configuration token from StartConfigurationSession response"
)


class SessionManager:
    """
    Holds the token every fetch must carry.

    The token rotates on every successful fetch (adopt) and is thrown away
    entirely when a fetch fails (discard). A broken token is never repaired;
    the next cycle starts a brand-new session instead.
    """

    def __init__(self, client: ConfigDataClient, session_parameters: Dict[str, Any]):
        self._client = client
        self._session_parameters = dict(session_parameters)
        self._token: Optional[str] = None
        self.sessions_started = 0

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    @property
    def session_parameters(self) -> Dict[str, Any]:
        return dict(self._session_parameters)

    def establish_session(self) -> str:
        """
        Start a new session, replacing any token currently held.

        Returns:
            The initial token

        Raises:
            SessionError: The service call failed or returned no token
        """
        self._token = None
        try:
            result = self._client.start_session(dict(self._session_parameters))
        except Exception as e:
            raise SessionError(str(e)) from e

        if not result or not result.initial_token:
            raise SessionError(MISSING_TOKEN_MESSAGE)

        self._token = result.initial_token
        self.sessions_started += 1
        logger.debug(f"Configuration session started (#{self.sessions_started})")
        return self._token

    def adopt(self, next_token: Optional[str]) -> None:
        """Take the rotated token from a fetch response, if it carried one."""
        if next_token:
            self._token = next_token

    def discard(self) -> None:
        """Forget the current token so the next cycle starts a new session."""
        self._token = None
