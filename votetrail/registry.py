# votetrail/registry.py
"""
Elections, events and ballots.

Parent entities are not proofed themselves; they own the records that are.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from .context import UserContext
from .errors import ParentNotFoundError, SubmissionError
from .logging import get_logger
from .proofs.hashing import format_timestamp
from .proofs.schemes import ProofScheme
from .settings import settings
from .store.base import RowStore

logger = get_logger(__name__)

SELECTION_TYPES = ("single", "multiple")


@dataclass
class PositionSpec:
    """A position to create on a new election."""
    position_name: str
    candidates: List[str]
    selection_type: str = "single"
    max_choices: int = 1


@dataclass
class BallotPosition:
    """A stored position with its candidates, in display order."""
    id: str
    position_name: str
    selection_type: str
    max_choices: int
    position_order: int
    candidates: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def candidate_ids(self) -> List[str]:
        return [c["id"] for c in self.candidates]


def _share_url(base_url: Optional[str], route: str, parent_id: str) -> str:
    base = (base_url or settings.public_base_url).rstrip("/")
    return f"{base}/{route}/{parent_id}"


def _validate_position(spec: PositionSpec) -> None:
    if not spec.position_name.strip():
        raise SubmissionError("Position name must not be empty")
    if spec.selection_type not in SELECTION_TYPES:
        raise SubmissionError(
            f"Invalid selection_type {spec.selection_type!r}. Must be one of: {list(SELECTION_TYPES)}"
        )
    if spec.max_choices < 1:
        raise SubmissionError("max_choices must be at least 1")
    if not [c for c in spec.candidates if c.strip()]:
        raise SubmissionError(f"Position {spec.position_name!r} needs at least one candidate")


def create_election(
    store: RowStore,
    user: UserContext,
    election_name: str,
    positions: Sequence[PositionSpec],
    base_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Create an election with its positions and candidates.

    Blank candidate names are skipped. A single-choice position always
    allows exactly one choice.

    Returns:
        The election row plus a "positions" list
    """
    if not election_name.strip():
        raise SubmissionError("Election name must not be empty")
    if not positions:
        raise SubmissionError("An election needs at least one position")
    for spec in positions:
        _validate_position(spec)

    election_id = str(uuid4())
    election = store.insert("elections", {
        "id": election_id,
        "election_name": election_name.strip(),
        "owner_id": user.user_id,
        "election_url": _share_url(base_url, "vote", election_id),
        "created_at": format_timestamp(now),
    })

    created_positions = []
    for order, spec in enumerate(positions):
        max_choices = 1 if spec.selection_type == "single" else spec.max_choices
        position = store.insert("positions", {
            "election_id": election_id,
            "position_name": spec.position_name.strip(),
            "selection_type": spec.selection_type,
            "max_choices": max_choices,
            "position_order": order,
        })
        position["candidates"] = [
            store.insert("candidates", {
                "position_id": position["id"],
                "candidate_name": name.strip(),
                "candidate_order": candidate_order,
            })
            for candidate_order, name in enumerate(spec.candidates)
            if name.strip()
        ]
        created_positions.append(position)

    logger.info(
        "election_created",
        election_id=election_id,
        owner_id=user.user_id,
        positions=len(created_positions),
    )
    election["positions"] = created_positions
    return election


def create_event(
    store: RowStore,
    user: UserContext,
    event_name: str,
    base_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Create an attendance event and return its row."""
    if not event_name.strip():
        raise SubmissionError("Event name must not be empty")

    event_id = str(uuid4())
    event = store.insert("events", {
        "id": event_id,
        "event_name": event_name.strip(),
        "owner_id": user.user_id,
        "event_url": _share_url(base_url, "event", event_id),
        "created_at": format_timestamp(now),
    })
    logger.info("event_created", event_id=event_id, owner_id=user.user_id)
    return event


def get_parent(store: RowStore, scheme: ProofScheme, parent_id: str) -> Dict[str, Any]:
    """Load an election or event, raising ParentNotFoundError if absent."""
    parent = store.select_one(scheme.parent_table, {"id": parent_id})
    if parent is None:
        raise ParentNotFoundError(scheme.parent_kind, parent_id)
    return parent


def list_owned(store: RowStore, scheme: ProofScheme, user: UserContext) -> List[Dict[str, Any]]:
    """Elections or events owned by user, newest first."""
    return store.select_many(
        scheme.parent_table,
        {"owner_id": user.user_id},
        order_by="created_at",
        descending=True,
    )


def load_ballot(store: RowStore, election_id: str) -> List[BallotPosition]:
    """Positions of an election with their candidates, in display order."""
    ballot = []
    for row in store.select_many("positions", {"election_id": election_id}, order_by="position_order"):
        ballot.append(BallotPosition(
            id=row["id"],
            position_name=row["position_name"],
            selection_type=row["selection_type"],
            max_choices=row["max_choices"],
            position_order=row["position_order"],
            candidates=store.select_many(
                "candidates", {"position_id": row["id"]}, order_by="candidate_order"
            ),
        ))
    return ballot


def validate_selections(
    ballot: Sequence[BallotPosition],
    selections: Mapping[str, Sequence[str]],
) -> None:
    """
    Check a ballot submission against the election's positions.

    Every position must be voted, candidates must belong to their position,
    single-choice positions take exactly one candidate and multiple-choice
    positions at most max_choices distinct candidates.

    Raises:
        SubmissionError: On the first violation found
    """
    by_id = {position.id: position for position in ballot}

    unknown = sorted(set(selections) - set(by_id))
    if unknown:
        raise SubmissionError(f"Unknown positions: {unknown}")

    missing = [p.position_name for p in ballot if not selections.get(p.id)]
    if missing:
        raise SubmissionError(f"Please vote for all positions. Missing: {missing}")

    for position_id, chosen in selections.items():
        position = by_id[position_id]
        chosen = list(chosen)
        if len(set(chosen)) != len(chosen):
            raise SubmissionError(f"Duplicate candidates for {position.position_name!r}")
        foreign = [c for c in chosen if c not in position.candidate_ids]
        if foreign:
            raise SubmissionError(
                f"Candidates {foreign} do not belong to {position.position_name!r}"
            )
        if position.selection_type == "single" and len(chosen) != 1:
            raise SubmissionError(f"{position.position_name!r} allows exactly one choice")
        if len(chosen) > position.max_choices:
            raise SubmissionError(
                f"Maximum {position.max_choices} choices allowed for {position.position_name!r}"
            )
