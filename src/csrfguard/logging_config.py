"""Logging configuration for CSRF audit logs with rotation."""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

_EXTRA_FIELDS = ("event_type", "method", "path", "ip_address", "user_agent", "reason")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        return json.dumps(log_data)


def setup_file_logger(
    name: str, log_file: Path, level: int = logging.INFO, max_days: int = 30
) -> logging.Logger:
    """Setup a logger that writes to a rotating file.

    Args:
        name: Logger name
        log_file: Path to log file
        level: Log level
        max_days: Number of days to keep logs

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # Don't propagate to root logger

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Daily rotation
    handler = TimedRotatingFileHandler(
        filename=str(log_file),
        when="midnight",
        interval=1,
        backupCount=max_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    return logger


# Audit loggers keyed by file path
_audit_loggers: Dict[str, logging.Logger] = {}


def get_audit_logger(log_file: str) -> logging.Logger:
    """Get or create the CSRF audit logger writing to ``log_file``."""
    logger = _audit_loggers.get(log_file)
    if logger is None:
        logger = setup_file_logger(name=f"csrfguard.audit.{len(_audit_loggers)}", log_file=Path(log_file))
        _audit_loggers[log_file] = logger
    return logger


def log_csrf_event_to_file(
    logger: logging.Logger,
    event_type: str,
    method: Optional[str] = None,
    path: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    reason: Optional[str] = None,
):
    """Log a CSRF event to file.

    Args:
        logger: Logger instance
        event_type: Type of event (e.g., "csrf_rejected")
        method: HTTP method
        path: Request path
        ip_address: Optional client IP address
        user_agent: Optional client user agent
        reason: Failure reason (missing, malformed, mismatch)
    """
    logger.info(
        f"CSRF event: {event_type}",
        extra={
            "event_type": event_type,
            "method": method,
            "path": path,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "reason": reason,
        },
    )
