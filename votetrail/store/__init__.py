# Store module - persistence collaborator for records and proofs
from .base import RowStore, StoreError, DuplicateRowError
from .sql import SqlRowStore
from .rest import RestRowStore
from .factory import build_store

__all__ = [
    "RowStore",
    "StoreError",
    "DuplicateRowError",
    "SqlRowStore",
    "RestRowStore",
    "build_store",
]
