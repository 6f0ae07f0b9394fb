# votetrail/db/schema.py
"""
Table definitions.

Timestamps are stored as text so the exact ISO-8601 millisecond string that
was hashed comes back unchanged. Proof tables are keyed by the record id,
which allows at most one proof per record.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

# Parent entities

elections = Table(
    "elections",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("election_name", Text, nullable=False),
    Column("owner_id", String(64), nullable=False, index=True),
    Column("election_url", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

positions = Table(
    "positions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("election_id", String(36), ForeignKey("elections.id"), nullable=False, index=True),
    Column("position_name", Text, nullable=False),
    Column("selection_type", String(16), nullable=False, default="single"),
    Column("max_choices", Integer, nullable=False, default=1),
    Column("position_order", Integer, nullable=False, default=0),
)

candidates = Table(
    "candidates",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("position_id", String(36), ForeignKey("positions.id"), nullable=False, index=True),
    Column("candidate_name", Text, nullable=False),
    Column("candidate_order", Integer, nullable=False, default=0),
)

events = Table(
    "events",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("event_name", Text, nullable=False),
    Column("owner_id", String(64), nullable=False, index=True),
    Column("event_url", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

# Records and their proofs

votes = Table(
    "votes",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("election_id", String(36), ForeignKey("elections.id"), nullable=False, index=True),
    Column("voter_name", Text, nullable=False),
    Column("vote_data", Text, nullable=False),
    Column("timestamp", String(32), nullable=False),
)

vote_proofs = Table(
    "vote_proofs",
    metadata,
    Column("vote_id", String(36), ForeignKey("votes.id"), primary_key=True),
    Column("proof_hash", String(64), nullable=False),
)

attendance = Table(
    "attendance",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("event_id", String(36), ForeignKey("events.id"), nullable=False, index=True),
    Column("name", Text, nullable=False),
    Column("timestamp", String(32), nullable=False),
)

attendance_proofs = Table(
    "attendance_proofs",
    metadata,
    Column("attendance_id", String(36), ForeignKey("attendance.id"), primary_key=True),
    Column("proof_hash", String(64), nullable=False),
)
