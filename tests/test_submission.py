# tests/test_submission.py
"""
Test vote and attendance submission.

Verifies the two-step record-then-proof write, the timestamp being captured
once, ballot validation and the failure taxonomy.
"""

import json
import logging

import pytest

from votetrail.errors import (
    ParentNotFoundError,
    ProofInsertError,
    RecordInsertError,
    SubmissionError,
)
from votetrail.proofs.generator import ProofGenerator
from votetrail.proofs.hashing import generate_proof
from votetrail.proofs.schemes import ATTENDANCE_SCHEME, VOTE_SCHEME
from votetrail.proofs.states import RecordState, record_state
from votetrail.proofs.verifier import verify_record


class TestVoteSubmission:
    """Tests for submit_vote."""

    def test_vote_and_proof_stored(self, store, generator, election, ballot_choice):
        """Record and proof are both persisted; state is PROOF_STORED."""
        result = generator.submit_vote(election["id"], "  alice  ", ballot_choice)

        assert result.state == RecordState.PROOF_STORED
        vote = store.select_one("votes", {"id": result.record_id})
        proof = store.select_one("vote_proofs", {"vote_id": result.record_id})

        assert vote["voter_name"] == "alice"
        assert vote["election_id"] == election["id"]
        assert json.loads(vote["vote_data"]) == ballot_choice
        assert proof["proof_hash"] == result.proof_hash

    def test_timestamp_captured_once(self, store, generator, election, ballot_choice):
        """The stored timestamp is the one that was hashed."""
        result = generator.submit_vote(election["id"], "alice", ballot_choice)
        vote = store.select_one("votes", {"id": result.record_id})

        assert vote["timestamp"] == "2024-01-15T09:30:00.000Z"
        content = f"alice|{vote['vote_data']}"
        assert result.proof_hash == generate_proof(election["id"], content, vote["timestamp"])

    def test_submitted_vote_verifies(self, store, generator, election, ballot_choice):
        result = generator.submit_vote(election["id"], "alice", ballot_choice)
        assert verify_record(store, VOTE_SCHEME, result.record)

    def test_unknown_election(self, generator, ballot_choice):
        with pytest.raises(ParentNotFoundError):
            generator.submit_vote("no-such-election", "alice", ballot_choice)

    def test_empty_name_rejected(self, generator, election, ballot_choice):
        with pytest.raises(SubmissionError):
            generator.submit_vote(election["id"], "   ", ballot_choice)

    def test_separator_in_name_rejected(self, store, generator, election, ballot_choice):
        """A name that would make the canonical string ambiguous is refused before any write."""
        with pytest.raises(ValueError):
            generator.submit_vote(election["id"], "al|ice", ballot_choice)

        assert store.select_many("votes", {"election_id": election["id"]}) == []

    def test_missing_position_rejected(self, generator, election, ballot_choice):
        president = election["positions"][0]["id"]
        partial = {president: ballot_choice[president]}

        with pytest.raises(SubmissionError, match="all positions"):
            generator.submit_vote(election["id"], "alice", partial)

    def test_too_many_choices_rejected(self, generator, election, ballot_choice):
        committee = election["positions"][1]
        ballot_choice[committee["id"]] = [c["id"] for c in committee["candidates"]]

        with pytest.raises(SubmissionError, match="Maximum 2"):
            generator.submit_vote(election["id"], "alice", ballot_choice)

    def test_single_choice_enforced(self, generator, election, ballot_choice):
        president = election["positions"][0]
        ballot_choice[president["id"]] = [c["id"] for c in president["candidates"]]

        with pytest.raises(SubmissionError):
            generator.submit_vote(election["id"], "alice", ballot_choice)

    def test_foreign_candidate_rejected(self, generator, election, ballot_choice):
        president, committee = election["positions"]
        ballot_choice[president["id"]] = [committee["candidates"][0]["id"]]

        with pytest.raises(SubmissionError, match="do not belong"):
            generator.submit_vote(election["id"], "alice", ballot_choice)

    def test_unknown_position_rejected(self, generator, election, ballot_choice):
        ballot_choice["not-a-position"] = ["x"]

        with pytest.raises(SubmissionError, match="Unknown positions"):
            generator.submit_vote(election["id"], "alice", ballot_choice)

    def test_validation_can_be_skipped(self, generator, election):
        result = generator.submit_vote(election["id"], "alice", {"p1": ["c1"]}, validate=False)
        assert result.record["vote_data"] == '{"p1":["c1"]}'


class TestAttendanceSubmission:
    """Tests for submit_attendance."""

    def test_check_in_stored_with_proof(self, store, generator, event):
        result = generator.submit_attendance(event["id"], " bob ")

        assert result.state == RecordState.PROOF_STORED
        row = store.select_one("attendance", {"id": result.record_id})
        proof = store.select_one("attendance_proofs", {"attendance_id": result.record_id})

        assert row["name"] == "bob"
        assert proof["proof_hash"] == result.proof_hash
        assert result.proof_hash == generate_proof(event["id"], "bob", row["timestamp"])

    def test_trimmed_name_is_hashed(self, store, generator, event):
        """The stored (trimmed) name verifies."""
        result = generator.submit_attendance(event["id"], "  bob\n")
        assert verify_record(store, ATTENDANCE_SCHEME, result.record)

    def test_unknown_event(self, generator):
        with pytest.raises(ParentNotFoundError):
            generator.submit_attendance("no-such-event", "bob")


class TestSubmissionFailures:
    """Tests for persistence failures during submission."""

    def test_record_insert_failure(self, failing_store, clock, election, ballot_choice):
        """Record insert fails: error surfaced, no proof attempted."""
        failing = failing_store("votes")
        generator = ProofGenerator(failing, atomic=False, clock=clock)

        with pytest.raises(RecordInsertError):
            generator.submit_vote(election["id"], "alice", ballot_choice)

        assert "vote_proofs" not in failing.attempted

    def test_proof_insert_failure_leaves_orphan(self, store, failing_store, clock, event):
        """Proof insert fails: record persists in PROOF_MISSING and never verifies."""
        generator = ProofGenerator(failing_store("attendance_proofs"), atomic=False, clock=clock)

        with pytest.raises(ProofInsertError) as exc_info:
            generator.submit_attendance(event["id"], "bob")

        record_id = exc_info.value.record_id
        record = store.select_one("attendance", {"id": record_id})

        assert record is not None
        assert record_state(store, ATTENDANCE_SCHEME, record_id) == RecordState.PROOF_MISSING
        assert verify_record(store, ATTENDANCE_SCHEME, record) is False

    def test_atomic_mode_rolls_back_record(self, store, failing_store, clock, event):
        """With atomic submissions a failed proof insert leaves nothing behind."""
        generator = ProofGenerator(failing_store("attendance_proofs"), atomic=True, clock=clock)

        with pytest.raises(RecordInsertError, match="rolled back"):
            generator.submit_attendance(event["id"], "bob")

        assert store.select_many("attendance", {"event_id": event["id"]}) == []

    def test_atomic_mode_success(self, store, clock, event):
        generator = ProofGenerator(store, atomic=True, clock=clock)
        result = generator.submit_attendance(event["id"], "bob")

        assert record_state(store, ATTENDANCE_SCHEME, result.record_id) == RecordState.PROOF_STORED

    def test_proof_failure_log_reports_missing_state(self, failing_store, clock, event, caplog):
        """Two-step mode logs the orphaned record as PROOF_MISSING."""
        generator = ProofGenerator(failing_store("attendance_proofs"), atomic=False, clock=clock)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ProofInsertError):
                generator.submit_attendance(event["id"], "bob")

        [entry] = [r for r in caplog.records if r.getMessage() == "proof_insert_failed"]
        assert entry.structured_data["state"] == RecordState.PROOF_MISSING.value
        assert entry.structured_data["rolled_back"] is False

    def test_atomic_proof_failure_log_reports_rollback(self, failing_store, clock, event, caplog):
        """Atomic mode logs a rollback, not a lingering PROOF_MISSING record."""
        generator = ProofGenerator(failing_store("attendance_proofs"), atomic=True, clock=clock)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RecordInsertError):
                generator.submit_attendance(event["id"], "bob")

        [entry] = [r for r in caplog.records if r.getMessage() == "proof_insert_failed"]
        assert entry.structured_data["rolled_back"] is True
        assert "state" not in entry.structured_data
