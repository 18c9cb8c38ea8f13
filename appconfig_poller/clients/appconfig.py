"""
Adapter for a boto3 AppConfig Data client.

boto3 is not a dependency of this package. Build the client yourself,
with whatever credentials your application uses, and pass it in:

    data_client = boto3.client("appconfigdata")
    client = AppConfigDataClient(data_client)
"""
from typing import Any, Dict, Optional

from .base import LatestConfiguration, SessionStart


def _read_body(body: Any) -> Optional[bytes]:
    # boto3 returns a StreamingBody; tests and stubs often pass raw bytes
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return body.read()


class AppConfigDataClient:
    """ConfigDataClient backed by boto3's appconfigdata client."""

    def __init__(self, data_client: Any):
        self._client = data_client

    def start_session(self, session_parameters: Dict[str, Any]) -> SessionStart:
        response = self._client.start_configuration_session(**session_parameters)
        return SessionStart(initial_token=response.get("InitialConfigurationToken"))

    def fetch_latest(self, token: str) -> LatestConfiguration:
        response = self._client.get_latest_configuration(ConfigurationToken=token)
        return LatestConfiguration(
            payload=_read_body(response.get("Configuration")),
            next_token=response.get("NextPollConfigurationToken"),
            version_label=response.get("VersionLabel"),
            suggested_interval_seconds=response.get("NextPollIntervalInSeconds"),
            content_type=response.get("ContentType"),
        )
