"""
Lifecycle phases of a poller instance.
"""
from enum import Enum
from typing import Dict, FrozenSet

from .errors import ContractError


class PollingPhase(Enum):
    """Where a poller is in its lifecycle."""
    READY = "ready"          # constructed, start() not called yet
    STARTING = "starting"    # session + first fetch in progress
    ACTIVE = "active"        # steady state, getters usable
    STOPPED = "stopped"      # terminal


_TRANSITIONS: Dict[PollingPhase, FrozenSet[PollingPhase]] = {
    PollingPhase.READY: frozenset({PollingPhase.STARTING, PollingPhase.STOPPED}),
    PollingPhase.STARTING: frozenset({PollingPhase.ACTIVE, PollingPhase.STOPPED}),
    PollingPhase.ACTIVE: frozenset({PollingPhase.STOPPED}),
    PollingPhase.STOPPED: frozenset(),
}


def can_transition(current: PollingPhase, target: PollingPhase) -> bool:
    return target in _TRANSITIONS[current]


def validate_transition(current: PollingPhase, target: PollingPhase) -> PollingPhase:
    """
    Check a phase change against the transition table.

    Returns:
        The target phase, so callers can assign the result directly

    Raises:
        ContractError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise ContractError(
            f"Invalid poller phase transition: {current.value} -> {target.value}"
        )
    return target
