# votetrail/main.py
"""
votetrail - Main Application

Vote and attendance collection where every record carries a SHA-256 proof
that is recomputed on audit to flag tampering.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .settings import settings
from .logging import configure_logging, get_logger
from .db.engine import check_connection
from .api import elections_router, events_router, proofs_router
from .api.deps import close_store, get_store

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.

    Builds the row store on startup and releases it on shutdown.
    """
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    store = get_store()
    logger.info("startup", store=type(store).__name__)

    yield

    close_store()
    logger.info("shutdown")


app = FastAPI(
    title="votetrail",
    description="""
    Tamper-evident votes and attendance.

    - Each vote or check-in is stored with a SHA-256 proof over its
      parent id, content and submission timestamp
    - Audits recompute every proof and flag records as Valid or Tampered
    """,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-User-Id"],
)

app.include_router(elections_router)
app.include_router(events_router)
app.include_router(proofs_router)


@app.get("/health")
def health_check():
    """Basic health check."""
    return {"status": "ok", "service": "votetrail"}


@app.get("/health/db")
def db_health_check():
    """Database health check (SQL backend only)."""
    if settings.store_backend != "sql":
        return {"status": "ok", "store": settings.store_backend}
    if check_connection():
        return {"status": "ok", "database": "connected"}
    raise HTTPException(status_code=503, detail="Database connection failed")


def run():
    """Run the server (entry point for CLI)."""
    import uvicorn
    uvicorn.run(
        "votetrail.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
