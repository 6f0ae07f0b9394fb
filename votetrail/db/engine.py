# votetrail/db/engine.py
"""
Database engine management.

The engine is created on first use from settings.database_url, so importing
this module never opens a connection.
"""

from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from ..settings import settings
from .schema import metadata

_engine: Optional[Engine] = None


def make_engine(database_url: str) -> Engine:
    """Create an engine with connection health checks."""
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Verification may fan out across threads
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(database_url, **kwargs)


def get_engine() -> Engine:
    """Get (and lazily create) the process-wide SQLAlchemy engine."""
    global _engine
    if _engine is None:
        _engine = make_engine(settings.database_url)
    return _engine


def init_db(engine: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    metadata.create_all(engine or get_engine())


def check_connection(engine: Optional[Engine] = None) -> bool:
    """
    Check database connection.

    Returns:
        True if connection successful
    """
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
