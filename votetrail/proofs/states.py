# votetrail/proofs/states.py
"""
Record lifecycle.

States:
SUBMITTED -> PROOF_PENDING       (record persisted, proof not yet)
PROOF_PENDING -> PROOF_STORED    (terminal, normal case)
PROOF_PENDING -> PROOF_MISSING   (terminal, proof insert failed)

Verification only reads the state; nothing moves a record back.
"""

from enum import Enum
from typing import Dict, Optional, Set

from ..store.base import RowStore
from .schemes import ProofScheme


class RecordState(Enum):
    SUBMITTED = "SUBMITTED"
    PROOF_PENDING = "PROOF_PENDING"
    PROOF_STORED = "PROOF_STORED"
    PROOF_MISSING = "PROOF_MISSING"


TRANSITIONS: Dict[RecordState, Set[RecordState]] = {
    RecordState.SUBMITTED: {RecordState.PROOF_PENDING},
    RecordState.PROOF_PENDING: {RecordState.PROOF_STORED, RecordState.PROOF_MISSING},
    RecordState.PROOF_STORED: set(),  # Terminal
    RecordState.PROOF_MISSING: set(),  # Terminal
}


class InvalidTransitionError(Exception):
    """Raised on a transition the lifecycle does not allow."""
    pass


def get_valid_transitions(current_state: RecordState) -> Set[RecordState]:
    """Get valid transitions from current state."""
    return TRANSITIONS.get(current_state, set())


def advance(current_state: RecordState, to_state: RecordState) -> RecordState:
    """Return to_state if the transition is allowed, else raise."""
    if to_state not in get_valid_transitions(current_state):
        raise InvalidTransitionError(
            f"Invalid transition: {current_state.value} -> {to_state.value}. "
            f"Valid transitions: {sorted(s.value for s in get_valid_transitions(current_state))}"
        )
    return to_state


def record_state(store: RowStore, scheme: ProofScheme, record_id: str) -> Optional[RecordState]:
    """
    Persisted state of a record.

    Returns:
        PROOF_STORED or PROOF_MISSING, or None if the record does not exist
    """
    if store.select_one(scheme.records_table, {"id": record_id}) is None:
        return None
    proof = store.select_one(scheme.proofs_table, {scheme.proof_key: record_id})
    return RecordState.PROOF_STORED if proof is not None else RecordState.PROOF_MISSING
