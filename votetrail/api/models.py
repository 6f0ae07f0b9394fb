# votetrail/api/models.py
"""Request and response bodies."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PositionIn(BaseModel):
    """A position on a new election."""
    position_name: str
    selection_type: str = "single"  # single or multiple
    max_choices: int = 1
    candidates: List[str]


class CreateElectionRequest(BaseModel):
    election_name: str
    positions: List[PositionIn]


class CreateEventRequest(BaseModel):
    event_name: str


class VoteRequest(BaseModel):
    voter_name: str
    selections: Dict[str, List[str]]  # position id -> candidate ids


class AttendanceRequest(BaseModel):
    name: str


class SubmissionResponse(BaseModel):
    """Stored record id, its proof and the submission timestamp."""
    record_id: str
    proof_hash: str
    timestamp: str
    state: str


class ComputeProofRequest(BaseModel):
    parent_id: str = Field(..., min_length=1)
    content: str
    timestamp: str


class ComputeProofResponse(BaseModel):
    proof_hash: str


class RecordStateResponse(BaseModel):
    kind: str
    record_id: str
    state: str


class AuditResponse(BaseModel):
    kind: str
    parent_id: str
    total: int
    valid: int
    tampered: int
    missing_proofs: int
    records: List[Dict[str, Any]]


class ElectionResponse(BaseModel):
    id: str
    election_name: str
    owner_id: str
    election_url: str
    created_at: str
    positions: Optional[List[Dict[str, Any]]] = None
