# votetrail/errors.py
"""
Domain exceptions.

Missing proofs and digest mismatches are verification outcomes, not errors,
and never raise.
"""

from typing import Optional


class VotetrailError(Exception):
    """Base exception for votetrail."""
    pass


class CanonicalizationError(VotetrailError, ValueError):
    """Raised when fields cannot be joined into an unambiguous canonical string."""
    pass


class SubmissionError(VotetrailError, ValueError):
    """Raised when submitted content is invalid (empty name, bad ballot)."""
    pass


class RecordInsertError(VotetrailError):
    """Raised when the record insert fails. No proof was attempted."""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"Failed to insert into {table}: {message}")


class ProofInsertError(VotetrailError):
    """
    Raised when the proof insert fails after the record was persisted.

    The record stays in PROOF_MISSING and will always verify as tampered.
    """

    def __init__(self, record_id: str, message: str):
        self.record_id = record_id
        super().__init__(f"Record {record_id} persisted without proof: {message}")


class ParentNotFoundError(VotetrailError):
    """Raised when an election or event does not exist."""

    def __init__(self, kind: str, parent_id: str):
        self.kind = kind
        self.parent_id = parent_id
        super().__init__(f"{kind} not found: {parent_id}")


class NotOwnerError(VotetrailError):
    """Raised when a user audits a parent entity they do not own."""

    def __init__(self, parent_id: str, user_id: Optional[str]):
        self.parent_id = parent_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own {parent_id}")
