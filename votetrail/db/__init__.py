# Database module
from .engine import get_engine, make_engine, init_db, check_connection
from .schema import metadata

__all__ = ["get_engine", "make_engine", "init_db", "check_connection", "metadata"]
