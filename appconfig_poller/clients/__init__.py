"""
Clients for the remote configuration service.
"""
from .base import ConfigDataClient, LatestConfiguration, SessionStart
from .appconfig import AppConfigDataClient
from .http import HttpConfigDataClient

__all__ = [
    "ConfigDataClient",
    "LatestConfiguration",
    "SessionStart",
    "AppConfigDataClient",
    "HttpConfigDataClient",
]
