# votetrail/settings.py
"""
Application settings.
"""

import os
from dataclasses import dataclass
from typing import Optional

# Load .env file
from dotenv import load_dotenv
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application configuration."""

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./votetrail.db")

    # Row store backend: "sql" (SQLAlchemy) or "rest" (PostgREST / Supabase)
    store_backend: str = os.getenv("STORE_BACKEND", "sql")
    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
    supabase_key: Optional[str] = os.getenv("SUPABASE_KEY")
    store_timeout_seconds: float = float(os.getenv("STORE_TIMEOUT", "10"))

    # Shareable links are built as {public_base_url}/vote/{id}
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    # Proof settings
    atomic_submissions: bool = _env_flag("ATOMIC_SUBMISSIONS")
    verify_workers: int = int(os.getenv("VERIFY_WORKERS", "1"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _env_flag("LOG_JSON", "true")

    # API settings
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    allowed_origins: str = os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8000"
    )


# Global settings instance
settings = Settings()
