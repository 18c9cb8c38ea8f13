"""
Optional FastAPI router exposing poller health.

    app = FastAPI()
    app.include_router(create_status_router(poller))

Reports metadata only, never the configuration itself, and never triggers
a fetch.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from .errors import ContractError
from .phase import PollingPhase
from .poller import Poller


class TierStatus(BaseModel):
    """Freshness of one cache tier."""
    has_value: bool
    last_fresh_time: Optional[str] = None
    version_label: Optional[str] = None
    stale: bool
    error: Optional[str] = None
    age_seconds: Optional[float] = None


class PollerStatus(BaseModel):
    """Health of a poller instance."""
    status: str  # "ok", "stale" or "inactive"
    phase: str
    string: Optional[TierStatus] = None
    object: Optional[TierStatus] = None


def _tier(entry_dict: Dict[str, Any]) -> TierStatus:
    return TierStatus(
        has_value=entry_dict["hasValue"],
        last_fresh_time=entry_dict["lastFreshTime"],
        version_label=entry_dict["versionLabel"],
        stale=entry_dict["stale"],
        error=entry_dict["error"],
        age_seconds=entry_dict["ageSeconds"],
    )


def build_status(poller: Poller) -> PollerStatus:
    """Snapshot a poller's health without raising."""
    phase = poller.phase
    if phase is not PollingPhase.ACTIVE:
        return PollerStatus(status="inactive", phase=phase.value)
    try:
        string_entry = poller.get_configuration_string()
        object_entry = poller.get_configuration_object()
    except ContractError:
        # stopped between the phase check and the read
        return PollerStatus(status="inactive", phase=poller.phase.value)

    stale = string_entry.is_stale or object_entry.is_stale
    return PollerStatus(
        status="stale" if stale else "ok",
        phase=phase.value,
        string=_tier(string_entry.to_dict()),
        object=_tier(object_entry.to_dict()),
    )


def create_status_router(poller: Poller, prefix: str = "/config") -> APIRouter:
    """Router with GET {prefix}/health and GET {prefix}/stats."""
    router = APIRouter(prefix=prefix)

    @router.get("/health", response_model=PollerStatus)
    def poller_health():
        """Freshness of the cached configuration."""
        return build_status(poller)

    @router.get("/stats")
    def poller_stats():
        """Refresh counters."""
        return poller.get_stats()

    return router
