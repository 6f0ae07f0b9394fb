# votetrail/api/routes_proofs.py
"""
Proof API routes.

Stateless digest computation and record lifecycle lookup.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..proofs.hashing import generate_proof
from ..proofs.schemes import SCHEMES
from ..proofs.states import record_state
from ..store import RowStore
from .deps import get_store, translate_errors
from .models import ComputeProofRequest, ComputeProofResponse, RecordStateResponse

router = APIRouter(prefix="/proofs", tags=["proofs"])


@router.post("/compute", response_model=ComputeProofResponse)
def compute_proof(request: ComputeProofRequest) -> ComputeProofResponse:
    """Digest for (parent_id, content, timestamp); nothing is stored."""
    with translate_errors():
        proof_hash = generate_proof(request.parent_id, request.content, request.timestamp)
    return ComputeProofResponse(proof_hash=proof_hash)


@router.get("/{kind}/{record_id}/state", response_model=RecordStateResponse)
def get_record_state(
    kind: str,
    record_id: str,
    store: RowStore = Depends(get_store),
) -> RecordStateResponse:
    """Whether a vote or check-in has its proof stored."""
    scheme = SCHEMES.get(kind)
    if scheme is None:
        raise HTTPException(status_code=400, detail=f"Invalid kind. Must be one of: {sorted(SCHEMES)}")

    with translate_errors():
        state = record_state(store, scheme, record_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"{kind} not found: {record_id}")
    return RecordStateResponse(kind=kind, record_id=record_id, state=state.value)
