"""
Entity Store
Persists customers, policies and claims and keeps foreign keys resolvable.

Writes are validated in full before anything touches the session, and each
write is committed as one unit; any failure rolls the session back so a
rejected patch never leaves a partial change behind.
"""
from typing import Any, Dict, List, Mapping, Optional, Type

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from claimdesk.core.exceptions import IntegrityError, NotFound, ValidationError
from claimdesk.core.logging import get_logger, log_audit_event
from claimdesk.core.security import ANONYMOUS_ACTOR
from claimdesk.db.base import Base
from claimdesk.db.models import Claim, ClaimStatus, Customer, Policy
from claimdesk.services.validation import (
    DUPLICATE,
    FieldErrors,
    clean_claim,
    clean_customer,
    clean_policy,
)

logger = get_logger(__name__)

CUSTOMER = "customer"
POLICY = "policy"
CLAIM = "claim"

MODELS: Dict[str, Type[Base]] = {
    CUSTOMER: Customer,
    POLICY: Policy,
    CLAIM: Claim,
}

# Fields a caller may write through create/update; everything else is
# assigned by the store or owned by the lifecycle engine.
WRITABLE_FIELDS = {
    CUSTOMER: {"first_name", "last_name", "email", "address", "phone"},
    POLICY: {"type", "coverage_amount", "customer_id"},
    CLAIM: {"date", "description", "claimed_amount", "policy_id"},
}

UNKNOWN_FIELD = "unknown_field"
CONSTRAINT_VIOLATION = "constraint_violation"


def model_for(kind: str) -> Type[Base]:
    try:
        return MODELS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None


class EntityStore:
    """Id -> record mapping per entity kind, backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # Reads

    def exists(self, kind: str, record_id: int) -> bool:
        model = model_for(kind)
        return self.db.query(model.id).filter(model.id == record_id).first() is not None

    def get(self, kind: str, record_id: int, for_update: bool = False):
        """Return the record or raise NotFound."""
        model = model_for(kind)
        query = self.db.query(model).filter(model.id == record_id)
        if for_update:
            # Serializes concurrent writers on databases with row locks
            query = query.with_for_update()
        record = query.first()
        if record is None:
            raise NotFound(kind, record_id)
        return record

    def list(self, kind: str, **filters: Any) -> List[Any]:
        """All records of a kind in insertion order, optionally filtered by column."""
        model = model_for(kind)
        return self.db.query(model).filter_by(**filters).order_by(model.id.asc()).all()

    def count(self, kind: str) -> int:
        model = model_for(kind)
        return self.db.query(func.count(model.id)).scalar() or 0

    def recent(self, kind: str, n: int) -> List[Any]:
        """The ``n`` most recently created records, newest first."""
        if n <= 0:
            return []
        model = model_for(kind)
        # Ids are assigned in creation order and records are never deleted
        return self.db.query(model).order_by(model.id.desc()).limit(n).all()

    # Validation

    def clean(
        self,
        kind: str,
        values: Mapping[str, Any],
        partial: bool = False,
        current_id: Optional[int] = None,
        errors: Optional[FieldErrors] = None,
    ) -> Dict[str, Any]:
        """
        Apply the form rules plus the checks that need the database
        (reference resolution, email uniqueness).

        Errors are merged into ``errors`` when given so a caller can add its
        own field checks before raising; otherwise they are raised here.
        """
        model_for(kind)
        raise_now = errors is None
        errors = FieldErrors() if errors is None else errors

        for field in values:
            if field not in WRITABLE_FIELDS[kind]:
                errors.add(field, UNKNOWN_FIELD)
        known = {k: v for k, v in values.items() if k in WRITABLE_FIELDS[kind]}

        if kind == CUSTOMER:
            cleaned, field_errors = clean_customer(known, partial=partial)
            email = cleaned.get("email")
            if email and self._email_taken(email, current_id):
                field_errors.add("email", DUPLICATE)
        elif kind == POLICY:
            cleaned, field_errors = clean_policy(
                known,
                partial=partial,
                customer_exists=lambda i: self.exists(CUSTOMER, i),
            )
        else:
            cleaned, field_errors = clean_claim(
                known,
                partial=partial,
                policy_exists=lambda i: self.exists(POLICY, i),
            )

        for field, code in field_errors.items():
            errors.add(field, code)

        if raise_now:
            errors.raise_if_any()
        return cleaned

    def _email_taken(self, email: str, current_id: Optional[int]) -> bool:
        query = self.db.query(Customer.id).filter(func.lower(Customer.email) == email.lower())
        if current_id is not None:
            query = query.filter(Customer.id != current_id)
        return query.first() is not None

    # Writes

    def create(self, kind: str, record: Mapping[str, Any], actor: str = ANONYMOUS_ACTOR):
        """Validate, assign a new id and persist."""
        cleaned = self.clean(kind, record)
        instance = model_for(kind)(**cleaned)
        if kind == CLAIM:
            instance.status = ClaimStatus.PENDING
            instance.settled_amount = None
            instance.add_timeline_event(ClaimStatus.PENDING.value, actor, "Claim submitted")

        self.db.add(instance)
        self.save(instance)
        log_audit_event(f"{kind}.created", actor, {"id": instance.id})
        return instance

    def update(self, kind: str, record_id: int, patch: Mapping[str, Any], actor: str = ANONYMOUS_ACTOR):
        """Merge a partial patch into an existing record."""
        instance = self.get(kind, record_id, for_update=True)
        try:
            cleaned = self.clean(kind, patch, partial=True, current_id=record_id)
        except ValidationError:
            self.db.rollback()
            raise
        self.assign(instance, cleaned)
        self.save(instance)
        log_audit_event(f"{kind}.updated", actor, {"id": record_id, "fields": sorted(cleaned)})
        return instance

    @staticmethod
    def assign(instance, cleaned: Mapping[str, Any]) -> None:
        for field, value in cleaned.items():
            setattr(instance, field, value)

    def save(self, instance) -> None:
        """Commit pending changes, translating database integrity failures."""
        try:
            self.db.commit()
        except SQLAlchemyIntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity violation on {type(instance).__name__}: {e.orig}")
            raise IntegrityError(self._integrity_fields(e)) from e
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Database error while saving {type(instance).__name__}")
            raise
        self.db.refresh(instance)

    @staticmethod
    def _integrity_fields(error: SQLAlchemyIntegrityError) -> Dict[str, str]:
        message = str(error.orig).lower()
        if "email" in message:
            return {"email": DUPLICATE}
        if "customer_id" in message:
            return {"customer_id": CONSTRAINT_VIOLATION}
        if "policy_id" in message:
            return {"policy_id": CONSTRAINT_VIOLATION}
        return {"record": CONSTRAINT_VIOLATION}
