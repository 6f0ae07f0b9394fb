# votetrail/api/routes_elections.py
"""
Election API routes.

Endpoints for creating elections, casting votes and auditing them.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ..context import UserContext
from ..proofs.generator import ProofGenerator
from ..proofs.schemes import VOTE_SCHEME
from ..proofs.verifier import audit_parent
from ..registry import PositionSpec, create_election, get_parent, list_owned, load_ballot
from ..store import RowStore
from .deps import get_current_user, get_generator, get_store, translate_errors
from .models import (
    AuditResponse,
    CreateElectionRequest,
    ElectionResponse,
    SubmissionResponse,
    VoteRequest,
)

router = APIRouter(prefix="/elections", tags=["elections"])


@router.post("", response_model=ElectionResponse, status_code=201)
def post_election(
    request: CreateElectionRequest,
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    """Create an election with its positions and candidates."""
    with translate_errors():
        return create_election(
            store,
            user,
            request.election_name,
            [PositionSpec(**p.model_dump()) for p in request.positions],
        )


@router.get("", response_model=List[ElectionResponse])
def get_my_elections(
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    """Elections owned by the caller, newest first."""
    with translate_errors():
        return list_owned(store, VOTE_SCHEME, user)


@router.get("/{election_id}", response_model=ElectionResponse)
def get_election(election_id: str, store: RowStore = Depends(get_store)) -> Dict[str, Any]:
    """Election with its ballot, as shown to voters."""
    with translate_errors():
        election = get_parent(store, VOTE_SCHEME, election_id)
        election["positions"] = [asdict(p) for p in load_ballot(store, election_id)]
        return election


@router.post("/{election_id}/votes", response_model=SubmissionResponse, status_code=201)
def post_vote(
    election_id: str,
    request: VoteRequest,
    generator: ProofGenerator = Depends(get_generator),
) -> SubmissionResponse:
    """Cast a vote; the proof is stored alongside it."""
    with translate_errors():
        result = generator.submit_vote(election_id, request.voter_name, request.selections)
    return SubmissionResponse(
        record_id=result.record_id,
        proof_hash=result.proof_hash,
        timestamp=result.timestamp,
        state=result.state.value,
    )


@router.get("/{election_id}/audit", response_model=AuditResponse)
def get_election_audit(
    election_id: str,
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    """Recheck integrity of every vote in the election, newest first."""
    with translate_errors():
        return audit_parent(store, VOTE_SCHEME, election_id, user=user).to_dict()
