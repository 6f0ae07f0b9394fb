# votetrail/store/sql.py
"""
SQLAlchemy row store.

Each call runs in its own transaction unless it happens inside atomic(),
in which case it joins the open transaction of the current thread.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import MetaData, Table, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db.schema import metadata as default_metadata
from ..logging import get_logger
from .base import DuplicateRowError, Row, RowStore, StoreError

logger = get_logger(__name__)


class SqlRowStore(RowStore):
    """Row store over SQLAlchemy Core tables."""

    def __init__(self, engine: Engine, metadata: MetaData = default_metadata):
        self.engine = engine
        self.metadata = metadata
        self._local = threading.local()

    def _table(self, name: str) -> Table:
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}")

    def _check_columns(self, table: Table, columns) -> None:
        unknown = sorted(set(columns) - set(table.c.keys()))
        if unknown:
            raise StoreError(f"Unknown columns for {table.name}: {unknown}")

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        active = getattr(self._local, "connection", None)
        if active is not None:
            yield active
            return
        with self.engine.begin() as conn:
            yield conn

    @contextmanager
    def atomic(self) -> Iterator["SqlRowStore"]:
        if getattr(self._local, "connection", None) is not None:
            # Already inside a transaction on this thread
            yield self
            return
        with self.engine.begin() as conn:
            self._local.connection = conn
            try:
                yield self
            finally:
                self._local.connection = None

    @property
    def supports_atomic(self) -> bool:
        return True

    def insert(self, table: str, row: Row) -> Row:
        tbl = self._table(table)
        values = dict(row)
        if "id" in tbl.c and not values.get("id"):
            values["id"] = str(uuid4())
        self._check_columns(tbl, values)

        try:
            with self._connection() as conn:
                conn.execute(tbl.insert().values(**values))
                key = {col.name: values[col.name] for col in tbl.primary_key.columns}
                stored = conn.execute(
                    select(tbl).where(*[tbl.c[k] == v for k, v in key.items()])
                ).first()
        except IntegrityError as e:
            logger.warning("store_insert_conflict", table=table, error=str(e.orig))
            raise DuplicateRowError(f"{table}: {e.orig}")
        except SQLAlchemyError as e:
            logger.error("store_insert_failed", table=table, error=str(e))
            raise StoreError(f"{table}: {e}")

        return dict(stored._mapping)

    def select_one(self, table: str, filters: Row) -> Optional[Row]:
        tbl = self._table(table)
        self._check_columns(tbl, filters)
        query = select(tbl).where(*[tbl.c[k] == v for k, v in filters.items()]).limit(1)
        try:
            with self._connection() as conn:
                result = conn.execute(query).first()
        except SQLAlchemyError as e:
            raise StoreError(f"{table}: {e}")
        return dict(result._mapping) if result is not None else None

    def select_many(
        self,
        table: str,
        filters: Row,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        tbl = self._table(table)
        self._check_columns(tbl, list(filters) + ([order_by] if order_by else []))
        query = select(tbl).where(*[tbl.c[k] == v for k, v in filters.items()])
        if order_by:
            column = tbl.c[order_by]
            query = query.order_by(column.desc() if descending else column.asc())
        # Primary key breaks ties so repeated reads return the same order
        query = query.order_by(*tbl.primary_key.columns)
        try:
            with self._connection() as conn:
                rows = conn.execute(query).all()
        except SQLAlchemyError as e:
            raise StoreError(f"{table}: {e}")
        return [dict(r._mapping) for r in rows]

    def close(self) -> None:
        self.engine.dispose()
