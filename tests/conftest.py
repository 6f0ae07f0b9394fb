# tests/conftest.py
"""
Pytest configuration and fixtures.

Tests run against an in-memory SQLite database created per test, so no
external database is needed.
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from votetrail.context import UserContext
from votetrail.db.schema import metadata
from votetrail.proofs.generator import ProofGenerator
from votetrail.registry import PositionSpec, create_election, create_event
from votetrail.store.base import RowStore, StoreError
from votetrail.store.sql import SqlRowStore


class FixedClock:
    """Returns 2024-01-15T09:30:00.000Z, then one second later on each call."""

    def __init__(self, start=datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        moment = self.current
        self.current = self.current + timedelta(seconds=1)
        return moment


class FailingStore(RowStore):
    """Delegates to a real store but fails every insert into one table."""

    def __init__(self, inner: RowStore, fail_table: str):
        self.inner = inner
        self.fail_table = fail_table
        self.attempted = []

    def insert(self, table, row):
        self.attempted.append(table)
        if table == self.fail_table:
            raise StoreError(f"simulated outage on {table}")
        return self.inner.insert(table, row)

    def select_one(self, table, filters):
        return self.inner.select_one(table, filters)

    def select_many(self, table, filters, order_by=None, descending=False):
        return self.inner.select_many(table, filters, order_by=order_by, descending=descending)

    @contextmanager
    def atomic(self):
        with self.inner.atomic():
            yield self

    @property
    def supports_atomic(self):
        return self.inner.supports_atomic


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> SqlRowStore:
    return SqlRowStore(engine)


@pytest.fixture
def owner() -> UserContext:
    return UserContext(user_id="owner-1", email="owner@example.com")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def generator(store, clock) -> ProofGenerator:
    return ProofGenerator(store, atomic=False, clock=clock)


@pytest.fixture
def election(store, owner):
    """Election with a single-choice and a two-of-three position."""
    return create_election(
        store,
        owner,
        "Board Election",
        [
            PositionSpec("President", ["Ada", "Grace"]),
            PositionSpec("Committee", ["Alan", "Barbara", "Edsger"], "multiple", 2),
        ],
        base_url="https://votes.example.com",
    )


@pytest.fixture
def event(store, owner):
    return create_event(store, owner, "Weekly Standup", base_url="https://votes.example.com")


@pytest.fixture
def ballot_choice(election):
    """A valid selection mapping for the election fixture."""
    president, committee = election["positions"]
    return {
        president["id"]: [president["candidates"][0]["id"]],
        committee["id"]: [committee["candidates"][0]["id"], committee["candidates"][2]["id"]],
    }


@pytest.fixture
def failing_store(store):
    """Factory: wrap the test store so inserts into one table fail."""
    def _make(table: str) -> FailingStore:
        return FailingStore(store, table)
    return _make
