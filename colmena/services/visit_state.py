"""
Visit state machine.

    pending --(scan)--> arrived --(scan)--> departed --(scan)--> rejected

Pure functions only; persistence is the caller's job.
"""
from datetime import datetime

from colmena.core.errors import InvalidStateTransition
from colmena.models.visit import VisitState


_NEXT_STATE = {
    VisitState.PENDING: VisitState.ARRIVED,
    VisitState.ARRIVED: VisitState.DEPARTED,
}

# Timestamp column stamped when a visit enters each state
_STAMPED_COLUMN = {
    VisitState.ARRIVED: "arrived_at",
    VisitState.DEPARTED: "departed_at",
}


def next_state(current: VisitState) -> VisitState:
    """
    Return the state a scan moves ``current`` into.

    Raises:
        InvalidStateTransition: If ``current`` is terminal.
    """
    current = VisitState(current)
    try:
        return _NEXT_STATE[current]
    except KeyError:
        raise InvalidStateTransition(current.value) from None


def apply_transition(current: VisitState, now: datetime) -> dict:
    """Column values to write for the scan of a visit in ``current``."""
    new_state = next_state(current)
    return {"state": new_state, _STAMPED_COLUMN[new_state]: now}
