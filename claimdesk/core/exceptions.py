"""
Domain error taxonomy.

Every failure in the domain core is a rejected operation carrying structured
data. Nothing here formats text for end users; the API layer serializes
``to_dict()`` and the presentation layer decides how to word it.
"""
from typing import Any, Dict, Mapping


class ClaimDeskError(Exception):
    """Base class for all domain errors."""

    code = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code}


class ValidationError(ClaimDeskError):
    """One or more field-level violations.

    ``errors`` maps the field name to a stable error code such as
    ``required`` or ``must_be_positive``.
    """

    code = "validation_error"

    def __init__(self, errors: Mapping[str, str]):
        self.errors = dict(errors)
        super().__init__(f"{self.code}: {sorted(self.errors)}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "fields": dict(self.errors)}


class IntegrityError(ValidationError):
    """A write would leave a foreign key dangling or break a unique key."""

    code = "integrity_error"


class NotFound(ClaimDeskError):
    """The referenced record does not exist."""

    code = "not_found"

    def __init__(self, kind: str, record_id: Any):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "kind": self.kind, "id": self.record_id}


class InvalidTransition(ClaimDeskError):
    """The requested claim status is not reachable from the current one."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"cannot move claim from {current} to {requested}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "current": self.current,
            "requested": self.requested,
        }
