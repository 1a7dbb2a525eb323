"""
Claim Lifecycle Engine
Governs how a claim moves between statuses.

    PENDING --> APPROVED --> SETTLED
       |
       +------> REJECTED

SETTLED and REJECTED are terminal. Re-saving the current status is always
allowed; every other (current, requested) pair not listed in
``ALLOWED_TRANSITIONS`` is refused.
"""
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from sqlalchemy import select, update

from claimdesk.core.exceptions import ClaimDeskError, InvalidTransition
from claimdesk.core.logging import get_logger, log_audit_event
from claimdesk.core.security import ANONYMOUS_ACTOR
from claimdesk.db.models import Claim, ClaimStatus
from claimdesk.services.store import CLAIM, EntityStore
from claimdesk.services.validation import (
    INVALID_CHOICE,
    ONLY_WHEN_SETTLED,
    REQUIRED,
    FieldErrors,
    clean_settled_amount,
    is_blank,
)

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[ClaimStatus, FrozenSet[ClaimStatus]] = {
    ClaimStatus.PENDING: frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.SETTLED}),
    ClaimStatus.REJECTED: frozenset(),
    ClaimStatus.SETTLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Claim fields owned by the lifecycle rather than the claim form
LIFECYCLE_FIELDS = ("status", "settled_amount")


def can_transition(current: ClaimStatus, requested: ClaimStatus) -> bool:
    return requested == current or requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def check_transition(current: ClaimStatus, requested: ClaimStatus) -> None:
    if not can_transition(current, requested):
        raise InvalidTransition(current.value, requested.value)


def parse_status(value: Any, errors: FieldErrors) -> Optional[ClaimStatus]:
    if is_blank(value):
        errors.add("status", REQUIRED)
        return None
    try:
        return ClaimStatus(value.upper() if isinstance(value, str) else value)
    except ValueError:
        errors.add("status", INVALID_CHOICE)
        return None


class ClaimLifecycle:
    """Submission, transitions and edit-mode updates of claims."""

    def __init__(self, store: EntityStore):
        self.store = store

    def submit(self, record: Mapping[str, Any], actor: str = ANONYMOUS_ACTOR) -> Claim:
        """
        File a new claim. It always starts PENDING; any status or settlement
        carried by the input is ignored.
        """
        values = {k: v for k, v in record.items() if k not in LIFECYCLE_FIELDS}
        return self.store.create(CLAIM, values, actor=actor)

    def transition(
        self,
        claim_id: int,
        new_status: Any,
        settled_amount: Any = None,
        actor: str = ANONYMOUS_ACTOR,
    ) -> Claim:
        """
        Move a claim to ``new_status``.

        Settling requires an explicit ``settled_amount`` >= 0; it is never
        derived from the claimed amount. Re-saving a settled claim without an
        amount keeps the stored one. Any other target clears the stored
        settlement.
        """
        claim = self.store.get(CLAIM, claim_id, for_update=True)
        errors = FieldErrors()
        target = parse_status(new_status, errors)
        settlement = None
        if target is not None:
            settlement = self._settlement(
                claim, target, settled_amount, settled_amount is not None, errors
            )
        self._check(claim, target, errors)

        self._claim_status(claim, target, settlement)
        self._apply_status(claim, target, settlement, actor)
        self.store.save(claim)
        return claim

    def update(self, claim_id: int, patch: Mapping[str, Any], actor: str = ANONYMOUS_ACTOR) -> Claim:
        """
        Edit-mode save: form fields plus an optional status/settlement.

        Field errors (form fields and settlement) are reported together and
        before any state-machine violation.
        """
        claim = self.store.get(CLAIM, claim_id, for_update=True)
        errors = FieldErrors()

        form_patch = {k: v for k, v in patch.items() if k not in LIFECYCLE_FIELDS}
        cleaned = self.store.clean(
            CLAIM, form_patch, partial=True, current_id=claim_id, errors=errors
        )

        target, settlement = self._requested_status(claim, patch, errors)
        self._check(claim, target, errors)

        self._claim_status(claim, target, settlement)
        self.store.assign(claim, cleaned)
        self._apply_status(claim, target, settlement, actor)
        self.store.save(claim)
        log_audit_event("claim.updated", actor, {"id": claim_id, "fields": sorted(cleaned)})
        return claim

    def _requested_status(
        self, claim: Claim, patch: Mapping[str, Any], errors: FieldErrors
    ) -> Tuple[Optional[ClaimStatus], Optional[Decimal]]:
        if patch.get("status") is not None:
            target = parse_status(patch["status"], errors)
        else:
            target = claim.status
        if target is None:
            return None, None
        provided = patch.get("settled_amount") is not None
        settlement = self._settlement(
            claim, target, patch.get("settled_amount"), provided, errors
        )
        return target, settlement

    @staticmethod
    def _settlement(
        claim: Claim,
        target: ClaimStatus,
        value: Any,
        provided: bool,
        errors: FieldErrors,
    ) -> Optional[Decimal]:
        """Settled amount to store for ``target``, recording any field error."""
        if target != ClaimStatus.SETTLED:
            if provided:
                errors.add("settled_amount", ONLY_WHEN_SETTLED)
            return None
        if provided:
            return clean_settled_amount(value, errors)
        if claim.status == ClaimStatus.SETTLED and claim.settled_amount is not None:
            return claim.settled_amount
        errors.add("settled_amount", REQUIRED)
        return None

    def _check(self, claim: Claim, target: Optional[ClaimStatus], errors: FieldErrors) -> None:
        claim_id = claim.id
        try:
            errors.raise_if_any()
            check_transition(claim.status, target)
        except ClaimDeskError as e:
            # Release the row lock; nothing was changed
            self.store.db.rollback()
            logger.info(f"Claim {claim_id} write rejected: {e}")
            raise

    def _claim_status(
        self, claim: Claim, target: ClaimStatus, settlement: Optional[Decimal]
    ) -> None:
        """
        Write ``target`` only while the stored status is still the one the
        transition was checked against. A claim moved by another writer since
        it was read is refused with InvalidTransition.
        """
        db = self.store.db
        claim_id = claim.id
        result = db.execute(
            update(Claim)
            .where(Claim.id == claim_id, Claim.status == claim.status)
            .values(status=target, settled_amount=settlement)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return

        current = ClaimStatus(
            db.execute(select(Claim.status).where(Claim.id == claim_id)).scalar_one()
        )
        db.rollback()
        logger.info(f"Claim {claim_id} changed to {current.value} by another writer")
        raise InvalidTransition(current.value, target.value)

    @staticmethod
    def _apply_status(
        claim: Claim, target: ClaimStatus, settlement: Optional[Decimal], actor: str
    ) -> None:
        previous = claim.status
        claim.status = target
        claim.settled_amount = settlement if target == ClaimStatus.SETTLED else None
        if target != previous:
            claim.add_timeline_event(
                target.value, actor, f"Status changed from {previous.value}"
            )
            log_audit_event(
                "claim.transitioned",
                actor,
                {"id": claim.id, "from": previous.value, "to": target.value},
            )
