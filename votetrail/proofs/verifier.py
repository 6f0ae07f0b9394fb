# votetrail/proofs/verifier.py
"""
Proof verification.

Each record's digest is recomputed from its persisted fields, using the
stored timestamp string exactly as stored, and compared to the stored proof
with exact string equality. A missing proof counts as not verified; the
user-facing status does not tell the two apart, VerificationResult does.

Verification is read-only, so batches can be checked in parallel.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..context import UserContext, require_owner
from ..errors import CanonicalizationError
from ..logging import get_logger
from ..registry import get_parent
from ..settings import settings
from ..store.base import RowStore
from .hashing import is_digest
from .schemes import ProofScheme

logger = get_logger(__name__)

VALID_LABEL = "Valid"
TAMPERED_LABEL = "Tampered"


class VerificationStatus(Enum):
    VALID = "VALID"
    TAMPERED = "TAMPERED"              # digest mismatch
    PROOF_MISSING = "PROOF_MISSING"    # no proof row for the record
    UNREADABLE = "UNREADABLE"          # stored fields no longer canonicalize


@dataclass
class VerificationResult:
    """Verification outcome for one record."""
    record_id: str
    status: VerificationStatus
    stored_hash: Optional[str] = None
    computed_hash: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.status is VerificationStatus.VALID

    @property
    def label(self) -> str:
        return VALID_LABEL if self.verified else TAMPERED_LABEL


def check_record(store: RowStore, scheme: ProofScheme, record: Dict[str, Any]) -> VerificationResult:
    """Verify one record and report why it failed, if it did."""
    record_id = record["id"]
    proof = store.select_one(scheme.proofs_table, {scheme.proof_key: record_id})
    if proof is None:
        logger.warning("proof_missing", kind=scheme.kind, record_id=record_id)
        return VerificationResult(record_id, VerificationStatus.PROOF_MISSING)

    stored_hash = proof[scheme.proof_column]
    if not is_digest(stored_hash):
        # Cannot equal a recomputed digest; still compared below
        logger.warning("proof_malformed", kind=scheme.kind, record_id=record_id)

    try:
        computed_hash = scheme.digest(record)
    except CanonicalizationError as e:
        logger.warning("record_unreadable", kind=scheme.kind, record_id=record_id, error=str(e))
        return VerificationResult(record_id, VerificationStatus.UNREADABLE, stored_hash=stored_hash)

    if computed_hash == stored_hash:
        status = VerificationStatus.VALID
    else:
        status = VerificationStatus.TAMPERED
        logger.warning("proof_mismatch", kind=scheme.kind, record_id=record_id)

    return VerificationResult(record_id, status, stored_hash=stored_hash, computed_hash=computed_hash)


def verify_record(store: RowStore, scheme: ProofScheme, record: Dict[str, Any]) -> bool:
    """True iff the record has a proof and its recomputed digest matches."""
    return check_record(store, scheme, record).verified


def check_batch(
    store: RowStore,
    scheme: ProofScheme,
    records: Sequence[Dict[str, Any]],
    max_workers: int = 1,
) -> List[VerificationResult]:
    """
    Verify records independently; results follow input order.

    Args:
        max_workers: Threads to fan out over (1 = sequential)
    """
    if max_workers <= 1 or len(records) <= 1:
        return [check_record(store, scheme, record) for record in records]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda record: check_record(store, scheme, record), records))


def verify_batch(
    store: RowStore,
    scheme: ProofScheme,
    records: Sequence[Dict[str, Any]],
    max_workers: int = 1,
) -> List[Tuple[Dict[str, Any], bool]]:
    """Pair each record with its verified flag, in input order."""
    results = check_batch(store, scheme, records, max_workers=max_workers)
    return [(record, result.verified) for record, result in zip(records, results)]


@dataclass
class AuditReport:
    """Verification of every record belonging to one election or event."""
    kind: str
    parent: Dict[str, Any]
    entries: List[Tuple[Dict[str, Any], VerificationResult]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entries)

    def count(self, status: VerificationStatus) -> int:
        return sum(1 for _, result in self.entries if result.status is status)

    @property
    def valid(self) -> int:
        return self.count(VerificationStatus.VALID)

    @property
    def tampered(self) -> int:
        return self.total - self.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "parent_id": self.parent["id"],
            "total": self.total,
            "valid": self.valid,
            "tampered": self.tampered,
            "missing_proofs": self.count(VerificationStatus.PROOF_MISSING),
            "records": [
                dict(record, verified=result.verified, status=result.label)
                for record, result in self.entries
            ],
        }


def audit_parent(
    store: RowStore,
    scheme: ProofScheme,
    parent_id: str,
    user: Optional[UserContext] = None,
    max_workers: Optional[int] = None,
) -> AuditReport:
    """
    Verify all records of an election or event, newest first.

    Args:
        user: When given, must own the parent entity

    Raises:
        ParentNotFoundError: Unknown parent
        NotOwnerError: user does not own the parent
    """
    parent = get_parent(store, scheme, parent_id)
    if user is not None:
        require_owner(parent, user)

    records = store.select_many(
        scheme.records_table,
        {scheme.parent_column: parent_id},
        order_by=scheme.order_column,
        descending=True,
    )
    workers = settings.verify_workers if max_workers is None else max_workers
    results = check_batch(store, scheme, records, max_workers=workers)

    report = AuditReport(kind=scheme.kind, parent=parent, entries=list(zip(records, results)))
    logger.info(
        "audit_completed",
        kind=scheme.kind,
        parent_id=parent_id,
        total=report.total,
        valid=report.valid,
        tampered=report.tampered,
    )
    return report
