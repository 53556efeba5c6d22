"""
Pending redemption lifecycle state machine definitions.

This module defines the canonical redemption states and the allowed
transitions between them. It is intentionally passive and validation-only;
the registry consults it before mutating a record.

Lifecycle per key:
- empty -> requested -> finalized (record deleted)
- empty -> finalized (funds arrived within the requesting call; no record persisted)

A requested record can only move to finalized. A repeat call that finds
funds missing leaves the record in requested (no transition).
"""

from __future__ import annotations

EMPTY: str = "empty"
REQUESTED: str = "requested"
FINALIZED: str = "finalized"

# Terminal redemption states: once reached, the record is deleted.
REDEMPTION_TERMINAL_STATES: frozenset[str] = frozenset({FINALIZED})


# Key   : previous state
# Value : set of allowed next states
REDEMPTION_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    EMPTY: frozenset({REQUESTED, FINALIZED}),
    REQUESTED: frozenset({FINALIZED}),
}


def is_terminal_state(state: str) -> bool:
    """Return True if the given state is terminal."""
    return state in REDEMPTION_TERMINAL_STATES


def is_valid_transition(prev_state: str, next_state: str) -> bool:
    """Return True if the transition prev_state -> next_state is allowed."""
    allowed = REDEMPTION_ALLOWED_TRANSITIONS.get(prev_state)
    if allowed is None:
        return False
    return next_state in allowed
