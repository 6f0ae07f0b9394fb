# votetrail/api/deps.py
"""
Shared FastAPI dependencies and error translation.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Depends, Header, HTTPException

from ..context import UserContext
from ..errors import (
    CanonicalizationError,
    NotOwnerError,
    ParentNotFoundError,
    ProofInsertError,
    RecordInsertError,
    SubmissionError,
)
from ..logging import get_logger
from ..proofs.generator import ProofGenerator
from ..store import RowStore, StoreError, build_store

logger = get_logger("votetrail.api")

_store: Optional[RowStore] = None


def get_store() -> RowStore:
    """Process-wide row store, built from settings on first use."""
    global _store
    if _store is None:
        _store = build_store()
    return _store


def close_store() -> None:
    global _store
    if _store is not None:
        _store.close()
        _store = None


def get_generator(store: RowStore = Depends(get_store)) -> ProofGenerator:
    return ProofGenerator(store)


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> UserContext:
    """
    The authenticated user, as forwarded by the auth layer in X-User-Id.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return UserContext(user_id=x_user_id)


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map domain exceptions onto HTTP errors."""
    try:
        yield
    except ParentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotOwnerError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (SubmissionError, CanonicalizationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProofInsertError as e:
        raise HTTPException(
            status_code=502,
            detail={"error": "proof_insert_failed", "record_id": e.record_id, "message": str(e)},
        )
    except RecordInsertError as e:
        raise HTTPException(
            status_code=502,
            detail={"error": "record_insert_failed", "message": str(e)},
        )
    except StoreError as e:
        logger.error("store_error", error=str(e))
        raise HTTPException(status_code=502, detail={"error": "store_error", "message": str(e)})
