# votetrail/api/routes_events.py
"""
Event API routes.

Endpoints for attendance check-in and auditing.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ..context import UserContext
from ..proofs.generator import ProofGenerator
from ..proofs.schemes import ATTENDANCE_SCHEME
from ..proofs.verifier import audit_parent
from ..registry import create_event, get_parent, list_owned
from ..store import RowStore
from .deps import get_current_user, get_generator, get_store, translate_errors
from .models import AttendanceRequest, AuditResponse, CreateEventRequest, SubmissionResponse

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", status_code=201)
def post_event(
    request: CreateEventRequest,
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    with translate_errors():
        return create_event(store, user, request.event_name)


@router.get("")
def get_my_events(
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    with translate_errors():
        return list_owned(store, ATTENDANCE_SCHEME, user)


@router.get("/{event_id}")
def get_event(event_id: str, store: RowStore = Depends(get_store)) -> Dict[str, Any]:
    with translate_errors():
        return get_parent(store, ATTENDANCE_SCHEME, event_id)


@router.post("/{event_id}/attendance", response_model=SubmissionResponse, status_code=201)
def post_attendance(
    event_id: str,
    request: AttendanceRequest,
    generator: ProofGenerator = Depends(get_generator),
) -> SubmissionResponse:
    """Check in to an event."""
    with translate_errors():
        result = generator.submit_attendance(event_id, request.name)
    return SubmissionResponse(
        record_id=result.record_id,
        proof_hash=result.proof_hash,
        timestamp=result.timestamp,
        state=result.state.value,
    )


@router.get("/{event_id}/audit", response_model=AuditResponse)
def get_event_audit(
    event_id: str,
    store: RowStore = Depends(get_store),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    """Recheck integrity of every check-in, newest first."""
    with translate_errors():
        return audit_parent(store, ATTENDANCE_SCHEME, event_id, user=user).to_dict()
