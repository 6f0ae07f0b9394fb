# votetrail/logging.py
"""
Structured logging for votetrail.

Every log line is a JSON object with consistent fields:
- timestamp: ISO 8601
- level: DEBUG/INFO/WARNING/ERROR/CRITICAL
- logger: Module name
- message: Event name
- **kwargs: Additional structured fields

Usage:
    from votetrail.logging import get_logger
    logger = get_logger(__name__)
    logger.info("vote_submitted", vote_id=vote_id, election_id=election_id)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter: one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "structured_data"):
            log_data.update(record.structured_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location for errors
        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """
    Wrapper around a stdlib logger that accepts keyword fields.

    Example:
        logger = get_logger(__name__)
        logger.warning("proof_missing", record_id=record_id)
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        """Underlying stdlib logger name."""
        return self._logger.name

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        """Emit an event name with keyword fields attached to the record."""
        extra = {"structured_data": kwargs}
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs):
        """Log a DEBUG event with keyword fields."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log an INFO event with keyword fields."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log a WARNING event with keyword fields."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log an ERROR event, optionally with the active traceback."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log at ERROR with the active traceback attached."""
        extra = {"structured_data": kwargs}
        self._logger.exception(message, extra=extra)


# Global configuration state
_configured = False


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
    force: bool = False,
):
    """
    Configure root logging for the application.

    Args:
        level: Log level name
        json_output: Use JSON format (True) or plain text (False)
        log_file: Optional file path to also write JSON logs to
        force: Reconfigure even if already configured
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredLogFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredLogFormatter())
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger, configuring logging from settings on first use.

    Args:
        name: Logger name (typically __name__)
    """
    if not _configured:
        from .settings import settings
        configure_logging(level=settings.log_level, json_output=settings.log_json)
    return StructuredLogger(name)
