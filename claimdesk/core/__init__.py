"""
Core module exports
"""
from claimdesk.core.config import settings, get_settings
from claimdesk.core.exceptions import (
    ClaimDeskError,
    ValidationError,
    IntegrityError,
    NotFound,
    InvalidTransition,
)
from claimdesk.core.logging import logger, get_logger, log_audit_event
from claimdesk.core.security import (
    ANONYMOUS_ACTOR,
    create_access_token,
    get_current_actor,
)

__all__ = [
    "settings",
    "get_settings",
    "ClaimDeskError",
    "ValidationError",
    "IntegrityError",
    "NotFound",
    "InvalidTransition",
    "logger",
    "get_logger",
    "log_audit_event",
    "ANONYMOUS_ACTOR",
    "create_access_token",
    "get_current_actor",
]
