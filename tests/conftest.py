"""
Shared fixtures: an in-memory configuration service and a ticking clock.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from appconfig_poller.clients.base import LatestConfiguration, SessionStart
from appconfig_poller.scheduler import ManualScheduler


class FakeConfigDataClient:
    """
    Scripted stand-in for the configuration service.

    Results are consumed in order; the last one repeats forever. An
    Exception in the script is raised instead of returned.
    """

    def __init__(self):
        self.session_results: List[Any] = [SessionStart(initial_token="initialToken")]
        self.fetch_results: List[Any] = [LatestConfiguration()]
        self.session_calls: List[Dict[str, Any]] = []
        self.fetch_calls: List[str] = []

    @staticmethod
    def _next(results: List[Any]) -> Any:
        item = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(item, Exception):
            raise item
        return item

    def start_session(self, session_parameters):
        self.session_calls.append(session_parameters)
        return self._next(self.session_results)

    def fetch_latest(self, token):
        self.fetch_calls.append(token)
        return self._next(self.fetch_results)


def config(
    value: Optional[str] = None,
    next_token: Optional[str] = None,
    version_label: Optional[str] = None,
    interval: Optional[float] = None,
) -> LatestConfiguration:
    """Build a fetch response; value=None means 'unchanged'."""
    return LatestConfiguration(
        payload=value.encode("utf-8") if value is not None else None,
        next_token=next_token,
        version_label=version_label,
        suggested_interval_seconds=interval,
    )


class TickingClock:
    """Returns a time one second later on every call."""

    def __init__(self):
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


SESSION_PARAMETERS = {
    "ApplicationIdentifier": "MyApp",
    "EnvironmentIdentifier": "Test",
    "ConfigurationProfileIdentifier": "Config1",
}


@pytest.fixture
def client():
    return FakeConfigDataClient()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def session_parameters():
    return dict(SESSION_PARAMETERS)
