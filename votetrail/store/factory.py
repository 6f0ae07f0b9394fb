# votetrail/store/factory.py
"""Builds the configured row store."""

from typing import Optional

from ..db.engine import get_engine, init_db, make_engine
from ..settings import Settings, settings as default_settings
from .base import RowStore
from .rest import RestRowStore
from .sql import SqlRowStore


def build_store(config: Optional[Settings] = None) -> RowStore:
    """
    Create the row store selected by STORE_BACKEND.

    The SQL backend creates missing tables on the way.
    """
    config = config or default_settings
    backend = config.store_backend.lower()

    if backend == "sql":
        engine = get_engine() if config is default_settings else make_engine(config.database_url)
        init_db(engine)
        return SqlRowStore(engine)

    if backend == "rest":
        if not config.supabase_url or not config.supabase_key:
            raise ValueError("STORE_BACKEND=rest requires SUPABASE_URL and SUPABASE_KEY")
        return RestRowStore(
            config.supabase_url,
            config.supabase_key,
            timeout=config.store_timeout_seconds,
        )

    raise ValueError(f"Unknown STORE_BACKEND: {config.store_backend}. Must be 'sql' or 'rest'")
