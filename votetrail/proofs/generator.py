# votetrail/proofs/generator.py
"""
Record submission with proof generation.

A submission captures its timestamp once, hashes the record fields with
that exact string, then writes the record followed by its proof. The two
inserts are separate writes unless atomic mode is enabled and the store
supports transactions; a failure between them leaves the record in
PROOF_MISSING, where it verifies as tampered forever.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..errors import ProofInsertError, RecordInsertError, SubmissionError
from ..logging import get_logger
from ..registry import get_parent, load_ballot, validate_selections
from ..settings import settings
from ..store.base import RowStore, StoreError
from .hashing import canonical_selections, format_timestamp
from .schemes import ATTENDANCE_SCHEME, VOTE_SCHEME, ProofScheme
from .states import RecordState, advance

logger = get_logger(__name__)


@dataclass
class SubmissionResult:
    """Outcome of a successful submission."""
    record: Dict[str, Any]
    proof_hash: str
    state: RecordState

    @property
    def record_id(self) -> str:
        return self.record["id"]

    @property
    def timestamp(self) -> str:
        return self.record["timestamp"]


def _clean_name(name: str, label: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise SubmissionError(f"{label} must not be empty")
    return cleaned


class ProofGenerator:
    """
    Submits votes and attendance check-ins with their proofs.

    The store is injected; nothing here holds a global client.
    """

    def __init__(
        self,
        store: RowStore,
        atomic: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            store: Row store for records and proofs
            atomic: Write record and proof in one transaction when the store
                supports it (default: settings.atomic_submissions)
            clock: Source of the submission instant (default: UTC now)
        """
        self.store = store
        self.atomic = settings.atomic_submissions if atomic is None else atomic
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def submit_vote(
        self,
        election_id: str,
        voter_name: str,
        selections: Mapping[str, Sequence[str]],
        validate: bool = True,
    ) -> SubmissionResult:
        """
        Submit a ballot.

        Args:
            election_id: Election the vote belongs to
            voter_name: Name as entered; surrounding whitespace is dropped
            selections: position id -> chosen candidate ids
            validate: Check selections against the election's positions

        Raises:
            ParentNotFoundError: Unknown election
            SubmissionError: Empty name or invalid ballot
            RecordInsertError: Vote not stored, no proof attempted
            ProofInsertError: Vote stored without proof
        """
        get_parent(self.store, VOTE_SCHEME, election_id)
        name = _clean_name(voter_name, "Voter name")
        if validate:
            validate_selections(load_ballot(self.store, election_id), selections)

        return self._submit(VOTE_SCHEME, {
            "election_id": election_id,
            "voter_name": name,
            "vote_data": canonical_selections(selections),
        })

    def submit_attendance(self, event_id: str, name: str) -> SubmissionResult:
        """
        Record an attendance check-in.

        The trimmed name is both stored and hashed.
        """
        get_parent(self.store, ATTENDANCE_SCHEME, event_id)
        return self._submit(ATTENDANCE_SCHEME, {
            "event_id": event_id,
            "name": _clean_name(name, "Name"),
        })

    def _submit(self, scheme: ProofScheme, fields: Dict[str, Any]) -> SubmissionResult:
        # Captured once; the same string is stored and hashed
        row = dict(fields, timestamp=format_timestamp(self.clock()))
        proof_hash = scheme.digest(row)

        if self.atomic and self.store.supports_atomic:
            try:
                with self.store.atomic():
                    return self._persist(scheme, row, proof_hash, in_transaction=True)
            except ProofInsertError as e:
                # Rolled back together with the record
                raise RecordInsertError(scheme.records_table, f"rolled back: {e}") from e

        return self._persist(scheme, row, proof_hash)

    def _persist(
        self,
        scheme: ProofScheme,
        row: Dict[str, Any],
        proof_hash: str,
        in_transaction: bool = False,
    ) -> SubmissionResult:
        state = RecordState.SUBMITTED
        parent_id = row[scheme.parent_column]

        try:
            record = self.store.insert(scheme.records_table, row)
        except StoreError as e:
            logger.error(
                "record_insert_failed",
                kind=scheme.kind,
                parent_id=parent_id,
                error=str(e),
            )
            raise RecordInsertError(scheme.records_table, str(e)) from e

        state = advance(state, RecordState.PROOF_PENDING)

        try:
            self.store.insert(scheme.proofs_table, {
                scheme.proof_key: record["id"],
                scheme.proof_column: proof_hash,
            })
        except StoreError as e:
            if in_transaction:
                # The record insert is undone with the proof
                logger.error(
                    "proof_insert_failed",
                    kind=scheme.kind,
                    record_id=record["id"],
                    parent_id=parent_id,
                    rolled_back=True,
                    error=str(e),
                )
                raise ProofInsertError(record["id"], str(e)) from e

            state = advance(state, RecordState.PROOF_MISSING)
            logger.error(
                "proof_insert_failed",
                kind=scheme.kind,
                record_id=record["id"],
                parent_id=parent_id,
                state=state.value,
                rolled_back=False,
                error=str(e),
            )
            raise ProofInsertError(record["id"], str(e)) from e

        state = advance(state, RecordState.PROOF_STORED)
        logger.info(
            f"{scheme.kind}_submitted",
            record_id=record["id"],
            parent_id=parent_id,
            proof_hash=proof_hash,
        )
        return SubmissionResult(record=record, proof_hash=proof_hash, state=state)
