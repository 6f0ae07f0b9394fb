"""API routes package."""

from .routes_elections import router as elections_router
from .routes_events import router as events_router
from .routes_proofs import router as proofs_router

__all__ = [
    "elections_router",
    "events_router",
    "proofs_router",
]
