"""
appconfig-poller - background polling and caching for AppConfig-style
configuration sessions.

This module provides:
- A poller that refreshes a configuration on a timer
- A two-tier cache (raw string and parsed object) with staleness tracking
- Recovery from failed fetches by starting a new session
"""
from .cache import CacheEntry, CacheTier, DualCache
from .clients import (
    AppConfigDataClient,
    ConfigDataClient,
    HttpConfigDataClient,
    LatestConfiguration,
    SessionStart,
)
from .errors import (
    ContractError,
    FetchError,
    ParseError,
    PollerError,
    SessionError,
)
from .phase import PollingPhase
from .poller import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    Poller,
    PollOutcome,
    StartResult,
)
from .scheduler import ManualScheduler, ScheduledTask, Scheduler, ThreadingScheduler
from .session import SessionManager
from .settings import PollerSettings

__version__ = "0.1.0"

__all__ = [
    # Poller
    "Poller",
    "PollOutcome",
    "StartResult",
    "PollingPhase",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    # Cache
    "CacheEntry",
    "CacheTier",
    "DualCache",
    # Session
    "SessionManager",
    # Clients
    "ConfigDataClient",
    "SessionStart",
    "LatestConfiguration",
    "AppConfigDataClient",
    "HttpConfigDataClient",
    # Scheduling
    "Scheduler",
    "ScheduledTask",
    "ThreadingScheduler",
    "ManualScheduler",
    # Errors
    "PollerError",
    "SessionError",
    "FetchError",
    "ParseError",
    "ContractError",
    # Settings
    "PollerSettings",
]
