# tests/test_store.py
"""
Test the row store adapters.

SQL adapter runs on in-memory SQLite; the REST adapter runs against an
httpx mock transport.
"""

import json
import logging

import httpx
import pytest

from votetrail.store.base import DuplicateRowError, StoreError
from votetrail.store.rest import RestRowStore


class TestSqlRowStore:
    """Tests for SqlRowStore."""

    def test_insert_generates_id(self, store):
        row = store.insert("events", {
            "event_name": "Standup",
            "owner_id": "u1",
            "event_url": "https://x/event/1",
            "created_at": "2024-01-15T09:30:00.000Z",
        })

        assert len(row["id"]) == 36
        assert store.select_one("events", {"id": row["id"]}) == row

    def test_timestamp_string_round_trips(self, store, event):
        """Stored timestamps come back byte for byte."""
        stamp = "2024-01-15T09:30:00.000Z"
        row = store.insert("attendance", {"event_id": event["id"], "name": "bob", "timestamp": stamp})

        assert store.select_one("attendance", {"id": row["id"]})["timestamp"] == stamp

    def test_proof_table_has_no_generated_id(self, store, event):
        record = store.insert("attendance", {
            "event_id": event["id"], "name": "bob", "timestamp": "2024-01-15T09:30:00.000Z",
        })
        proof = store.insert("attendance_proofs", {"attendance_id": record["id"], "proof_hash": "a" * 64})

        assert proof == {"attendance_id": record["id"], "proof_hash": "a" * 64}

    def test_one_proof_per_record(self, store, event):
        record = store.insert("attendance", {
            "event_id": event["id"], "name": "bob", "timestamp": "2024-01-15T09:30:00.000Z",
        })
        store.insert("attendance_proofs", {"attendance_id": record["id"], "proof_hash": "a" * 64})

        with pytest.raises(DuplicateRowError):
            store.insert("attendance_proofs", {"attendance_id": record["id"], "proof_hash": "b" * 64})

    def test_select_one_missing(self, store):
        assert store.select_one("votes", {"id": "nope"}) is None

    def test_select_many_ordering(self, store, event):
        for stamp in ("2024-01-15T09:30:01.000Z", "2024-01-15T09:30:03.000Z", "2024-01-15T09:30:02.000Z"):
            store.insert("attendance", {"event_id": event["id"], "name": stamp[-6:], "timestamp": stamp})

        newest_first = store.select_many(
            "attendance", {"event_id": event["id"]}, order_by="timestamp", descending=True
        )
        oldest_first = store.select_many("attendance", {"event_id": event["id"]}, order_by="timestamp")

        assert [r["timestamp"][17:19] for r in newest_first] == ["03", "02", "01"]
        assert oldest_first == list(reversed(newest_first))

    def test_unknown_table(self, store):
        with pytest.raises(StoreError):
            store.select_one("ballots", {})

    def test_unknown_column(self, store):
        with pytest.raises(StoreError):
            store.insert("events", {"event_name": "x", "colour": "red"})

    def test_atomic_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            with store.atomic():
                store.insert("events", {
                    "id": "ev-rollback",
                    "event_name": "x",
                    "owner_id": "u1",
                    "event_url": "u",
                    "created_at": "2024-01-15T09:30:00.000Z",
                })
                raise RuntimeError("abort")

        assert store.select_one("events", {"id": "ev-rollback"}) is None

    def test_atomic_commits(self, store):
        with store.atomic():
            store.insert("events", {
                "id": "ev-commit",
                "event_name": "x",
                "owner_id": "u1",
                "event_url": "u",
                "created_at": "2024-01-15T09:30:00.000Z",
            })
            # Visible inside the transaction
            assert store.select_one("events", {"id": "ev-commit"}) is not None

        assert store.select_one("events", {"id": "ev-commit"}) is not None
        assert store.supports_atomic


def _rest_store(handler) -> RestRowStore:
    return RestRowStore(
        "https://project.supabase.co/",
        "anon-key",
        transport=httpx.MockTransport(handler),
    )


class TestRestRowStore:
    """Tests for RestRowStore."""

    def test_insert_posts_representation(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["prefer"] = request.headers.get("Prefer")
            seen["apikey"] = request.headers.get("apikey")
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=[seen["body"]])

        store = _rest_store(handler)
        row = store.insert("votes", {"election_id": "e1", "voter_name": "alice",
                                     "vote_data": "{}", "timestamp": "2024-01-15T09:30:00.000Z"})

        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/v1/votes"
        assert seen["prefer"] == "return=representation"
        assert seen["apikey"] == "anon-key"
        assert seen["auth"] == "Bearer anon-key"
        assert len(seen["body"]["id"]) == 36
        assert row["voter_name"] == "alice"

    def test_proof_insert_has_no_generated_id(self):
        def handler(request):
            return httpx.Response(201, json=[json.loads(request.content)])

        row = _rest_store(handler).insert("vote_proofs", {"vote_id": "v1", "proof_hash": "a" * 64})
        assert "id" not in row

    def test_select_one_filters(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"vote_id": "v1", "proof_hash": "a" * 64}])

        row = _rest_store(handler).select_one("vote_proofs", {"vote_id": "v1"})

        assert seen["params"] == {"vote_id": "eq.v1", "limit": "1"}
        assert row["proof_hash"] == "a" * 64

    def test_select_one_empty(self):
        store = _rest_store(lambda request: httpx.Response(200, json=[]))
        assert store.select_one("vote_proofs", {"vote_id": "v1"}) is None

    def test_select_many_order(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"id": "a"}, {"id": "b"}])

        rows = _rest_store(handler).select_many(
            "votes", {"election_id": "e1"}, order_by="timestamp", descending=True
        )

        assert seen["params"] == {"election_id": "eq.e1", "order": "timestamp.desc"}
        assert [r["id"] for r in rows] == ["a", "b"]

    def test_conflict_is_duplicate(self):
        store = _rest_store(lambda request: httpx.Response(409, json={"code": "23505"}))

        with pytest.raises(DuplicateRowError):
            store.insert("vote_proofs", {"vote_id": "v1", "proof_hash": "a" * 64})

    def test_server_error(self):
        store = _rest_store(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(StoreError, match="HTTP 500"):
            store.select_many("votes", {})

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(StoreError):
            _rest_store(handler).insert("votes", {"voter_name": "x"})

    def test_non_json_body_is_store_error(self, caplog):
        """A 200 with an unparseable body surfaces as StoreError, not a decode error."""
        store = _rest_store(lambda request: httpx.Response(200, text="<html>gateway</html>"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(StoreError, match="not JSON"):
                store.select_many("votes", {"election_id": "e1"})
            with pytest.raises(StoreError, match="not JSON"):
                store.select_one("vote_proofs", {"vote_id": "v1"})

        failures = [r for r in caplog.records if r.getMessage() == "store_request_failed"]
        assert [r.structured_data["method"] for r in failures] == ["GET", "GET"]

    def test_select_failure_logged(self, caplog):
        store = _rest_store(lambda request: httpx.Response(503, text="down"))

        with caplog.at_level(logging.ERROR):
            with pytest.raises(StoreError, match="HTTP 503"):
                store.select_one("votes", {"id": "v1"})

        [entry] = [r for r in caplog.records if r.getMessage() == "store_request_failed"]
        assert entry.structured_data["table"] == "votes"

    def test_object_body_for_select_rejected(self):
        store = _rest_store(lambda request: httpx.Response(200, json={"id": "v1"}))

        with pytest.raises(StoreError, match="JSON array"):
            store.select_one("votes", {"id": "v1"})

    def test_no_transactions(self):
        store = _rest_store(lambda request: httpx.Response(200, json=[]))

        assert not store.supports_atomic
        with pytest.raises(NotImplementedError):
            with store.atomic():
                pass
