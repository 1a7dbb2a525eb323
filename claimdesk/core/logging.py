"""
Logging configuration with field masking for customer contact data
"""
import logging
import re
from typing import Any

from claimdesk.core.config import settings


# Patterns to mask in logs
MASK_PATTERNS = [
    (r"'email':\s*'[^']*'", "'email': '***@***'"),
    (r'"email":\s*"[^"]*"', '"email": "***@***"'),
    (r"'phone':\s*'[^']*'", "'phone': '***'"),
    (r'"phone":\s*"[^"]*"', '"phone": "***"'),
    (r"[\w.+-]+@[\w-]+\.[\w.-]+", "***@***"),
]


class MaskingFormatter(logging.Formatter):
    """Custom formatter that masks customer contact fields."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for pattern, replacement in MASK_PATTERNS:
            message = re.sub(pattern, replacement, message, flags=re.IGNORECASE)
        return message


def setup_logging() -> logging.Logger:
    """Configure application logging."""
    logger = logging.getLogger("claimdesk")
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Re-imports must not stack handlers
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
        console_handler.setFormatter(
            MaskingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()


def get_logger(name: str) -> logging.Logger:
    """Child logger of the application logger, sharing its handler."""
    if name.startswith("claimdesk"):
        return logging.getLogger(name)
    return logger.getChild(name)


def log_audit_event(
    event_type: str,
    actor_id: str,
    details: dict[str, Any],
) -> None:
    """Log an audit event for a domain write."""
    logger.info(f"AUDIT: {event_type} | actor={actor_id} | details={details}")
