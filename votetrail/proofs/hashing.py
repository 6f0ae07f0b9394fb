# votetrail/proofs/hashing.py
"""
Proof digests for submitted records.

A proof is the SHA-256 of the record's fields joined with a single
project-wide separator. The join is only unambiguous if field boundaries
cannot shift, so every field must be separator-free except at most one
(the "opaque" field, e.g. a JSON ballot). With a single field allowed to
contain the separator, splitting from both ends recovers every field.
"""

import hashlib
import json
import re
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Union

from ..errors import CanonicalizationError

SEPARATOR = "|"

# 2024-01-15T09:30:00.000Z
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

DIGEST_PATTERN = re.compile(r"^[a-f0-9]{64}$")


def compute_sha256(data: Union[bytes, str]) -> str:
    """
    Compute SHA-256 hash of data.

    Args:
        data: Raw bytes or string (strings are UTF-8 encoded)

    Returns:
        Lowercase hex string of SHA-256 hash (64 characters)
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def is_digest(value: Any) -> bool:
    """True if value is a 64-char lowercase hex string."""
    return isinstance(value, str) and bool(DIGEST_PATTERN.match(value))


def canonicalize(fields: Sequence[str], opaque_index: Optional[int] = None) -> str:
    """
    Join fields into one canonical string.

    Args:
        fields: Ordered field values
        opaque_index: Position of the one field allowed to contain SEPARATOR

    Returns:
        Fields joined with SEPARATOR

    Raises:
        CanonicalizationError: A non-opaque field contains SEPARATOR, or a
            field is not a string
    """
    if opaque_index is not None and not 0 <= opaque_index < len(fields):
        raise CanonicalizationError(f"opaque_index {opaque_index} out of range")

    for i, value in enumerate(fields):
        if not isinstance(value, str):
            raise CanonicalizationError(
                f"Field {i} must be a string, got {type(value).__name__}"
            )
        if i != opaque_index and SEPARATOR in value:
            raise CanonicalizationError(
                f"Field {i} contains reserved separator {SEPARATOR!r}"
            )

    return SEPARATOR.join(fields)


def generate_proof(parent_id: str, submitter_content: str, timestamp: str) -> str:
    """
    Derive the proof digest for one submission.

    Args:
        parent_id: Election or event id
        submitter_content: Canonical encoding of what was submitted; may
            itself contain SEPARATOR
        timestamp: ISO-8601 UTC millisecond string, the same value that is
            persisted with the record

    Returns:
        64-char lowercase hex digest

    Raises:
        CanonicalizationError: Empty parent_id, non-canonical timestamp, or
            a separator in parent_id or timestamp
    """
    if not parent_id:
        raise CanonicalizationError("parent_id must be non-empty")
    if not is_canonical_timestamp(timestamp):
        raise CanonicalizationError(
            f"timestamp must look like 2024-01-15T09:30:00.000Z, got {timestamp!r}"
        )
    return compute_sha256(canonicalize([parent_id, submitter_content, timestamp], opaque_index=1))


def canonical_selections(selections: Mapping[str, Sequence[str]]) -> str:
    """
    Serialize a ballot deterministically.

    Keys are sorted and separators are compact, so {"p1": ["c1"]} becomes
    '{"p1":["c1"]}' regardless of insertion order. Candidate order inside a
    position is preserved as submitted.
    """
    return json.dumps(
        {str(k): list(v) for k, v in selections.items()},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Render an instant as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC. Defaults to now.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def is_canonical_timestamp(value: Any) -> bool:
    """True if value has the exact YYYY-MM-DDTHH:MM:SS.mmmZ shape."""
    return isinstance(value, str) and bool(TIMESTAMP_PATTERN.match(value))
