# votetrail/proofs/schemes.py
"""
Proof schemes per record kind.

A scheme names the tables involved and the ordered record fields that go
into the digest. Votes and attendance share the same canonicalization;
only the field list differs.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .hashing import canonicalize, compute_sha256


@dataclass(frozen=True)
class ProofScheme:
    """How one kind of record is stored, proofed and re-verified."""
    kind: str                       # "vote" or "attendance"
    parent_kind: str                # "election" or "event"
    parent_table: str
    records_table: str
    proofs_table: str
    parent_column: str              # FK from record to parent
    proof_key: str                  # FK from proof to record id
    fields: Tuple[str, ...]         # hashed record columns, in order
    opaque_field: Optional[str] = None
    proof_column: str = "proof_hash"
    order_column: str = "timestamp"

    def canonical_string(self, record: Dict[str, Any]) -> str:
        """Canonical string for a stored record (raises CanonicalizationError)."""
        values = [record.get(name) for name in self.fields]
        opaque_index = self.fields.index(self.opaque_field) if self.opaque_field else None
        return canonicalize(values, opaque_index=opaque_index)

    def digest(self, record: Dict[str, Any]) -> str:
        """Digest of a record's hashed fields as currently stored."""
        return compute_sha256(self.canonical_string(record))


VOTE_SCHEME = ProofScheme(
    kind="vote",
    parent_kind="election",
    parent_table="elections",
    records_table="votes",
    proofs_table="vote_proofs",
    parent_column="election_id",
    proof_key="vote_id",
    fields=("election_id", "voter_name", "vote_data", "timestamp"),
    opaque_field="vote_data",
)

ATTENDANCE_SCHEME = ProofScheme(
    kind="attendance",
    parent_kind="event",
    parent_table="events",
    records_table="attendance",
    proofs_table="attendance_proofs",
    parent_column="event_id",
    proof_key="attendance_id",
    fields=("event_id", "name", "timestamp"),
)

SCHEMES: Dict[str, ProofScheme] = {
    VOTE_SCHEME.kind: VOTE_SCHEME,
    ATTENDANCE_SCHEME.kind: ATTENDANCE_SCHEME,
}
