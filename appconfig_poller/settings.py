"""Configuration management using pydantic-settings."""
from typing import Any, Dict, Optional

from pydantic_settings import BaseSettings


class PollerSettings(BaseSettings):
    """
    Poller settings loaded from environment variables.

    Every field reads APPCONFIG_POLLER_<FIELD_NAME>, e.g.
    APPCONFIG_POLLER_APPLICATION_IDENTIFIER=MyApp.
    """

    # Which configuration profile to poll
    application_identifier: str
    environment_identifier: str
    configuration_profile_identifier: str

    # Service-side floor on how often the session may be polled
    required_minimum_poll_interval_seconds: Optional[int] = None

    # Fixed interval; None means use the service's suggestion
    poll_interval_seconds: Optional[float] = None

    # HTTP client settings (only used with HttpConfigDataClient)
    endpoint_url: Optional[str] = None
    request_timeout_seconds: float = 10.0

    class Config:
        env_prefix = "APPCONFIG_POLLER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def session_parameters(self) -> Dict[str, Any]:
        """Parameters for StartConfigurationSession."""
        params: Dict[str, Any] = {
            "ApplicationIdentifier": self.application_identifier,
            "EnvironmentIdentifier": self.environment_identifier,
            "ConfigurationProfileIdentifier": self.configuration_profile_identifier,
        }
        if self.required_minimum_poll_interval_seconds is not None:
            params["RequiredMinimumPollIntervalInSeconds"] = self.required_minimum_poll_interval_seconds
        return params
