# Proofs module - integrity digests for votes and attendance
#
# generator and verifier are imported from their modules directly:
# generator depends on votetrail.registry, which depends on this package.
from .hashing import (
    SEPARATOR,
    compute_sha256,
    canonicalize,
    generate_proof,
    canonical_selections,
    format_timestamp,
    is_canonical_timestamp,
)
from .schemes import ProofScheme, VOTE_SCHEME, ATTENDANCE_SCHEME, SCHEMES
from .states import RecordState, get_valid_transitions, record_state

__all__ = [
    "SEPARATOR",
    "compute_sha256",
    "canonicalize",
    "generate_proof",
    "canonical_selections",
    "format_timestamp",
    "is_canonical_timestamp",
    "ProofScheme",
    "VOTE_SCHEME",
    "ATTENDANCE_SCHEME",
    "SCHEMES",
    "RecordState",
    "get_valid_transitions",
    "record_state",
]
