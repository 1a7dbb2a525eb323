"""
Tests for the claim lifecycle engine.
"""

from decimal import Decimal
from itertools import product

import pytest

from claimdesk.core.exceptions import IntegrityError, InvalidTransition, NotFound, ValidationError
from claimdesk.db.models import Claim, ClaimStatus
from claimdesk.services import CLAIM, TERMINAL_STATUSES, can_transition
from tests.conftest import claim_data

PENDING = ClaimStatus.PENDING
APPROVED = ClaimStatus.APPROVED
REJECTED = ClaimStatus.REJECTED
SETTLED = ClaimStatus.SETTLED

ALLOWED = {
    (PENDING, PENDING),
    (PENDING, APPROVED),
    (PENDING, REJECTED),
    (APPROVED, APPROVED),
    (APPROVED, SETTLED),
    (REJECTED, REJECTED),
    (SETTLED, SETTLED),
}


class TestTransitionTable:
    """The transition table is total and fails closed."""

    @pytest.mark.parametrize("current,requested", list(product(ClaimStatus, repeat=2)))
    def test_every_pair(self, current, requested):
        assert can_transition(current, requested) is ((current, requested) in ALLOWED)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {REJECTED, SETTLED}


class TestSubmit:
    """Filing new claims."""

    def test_submit_starts_pending(self, lifecycle, test_policy):
        claim = lifecycle.submit(claim_data(test_policy.id))
        assert claim.status == PENDING
        assert claim.settled_amount is None

    @pytest.mark.parametrize("status", ["APPROVED", "REJECTED", "SETTLED", "bogus"])
    def test_supplied_status_is_ignored(self, lifecycle, test_policy, status):
        claim = lifecycle.submit(
            claim_data(test_policy.id, status=status, settled_amount=100)
        )
        assert claim.status == PENDING
        assert claim.settled_amount is None

    def test_submit_reports_every_failing_field(self, lifecycle, store):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.submit({"description": "", "claimed_amount": -3, "policy_id": 9})
        assert exc_info.value.errors == {
            "date": "required",
            "description": "required",
            "claimed_amount": "must_be_positive",
            "policy_id": "not_found",
        }
        assert store.count(CLAIM) == 0

    def test_submit_against_missing_policy(self, lifecycle, test_customer):
        with pytest.raises(IntegrityError):
            lifecycle.submit(claim_data(policy_id=1))

    def test_submit_records_actor(self, lifecycle, test_policy):
        claim = lifecycle.submit(claim_data(test_policy.id), actor="agent-7")
        assert len(claim.timeline) == 1
        assert claim.timeline[0]["actor"] == "agent-7"


class TestTransition:
    """Explicit status transitions."""

    def test_approve_then_settle(self, lifecycle, test_claim):
        claim = lifecycle.transition(test_claim.id, APPROVED)
        assert claim.status == APPROVED
        assert claim.settled_amount is None

        claim = lifecycle.transition(test_claim.id, SETTLED, settled_amount=450)
        assert claim.status == SETTLED
        assert claim.settled_amount == Decimal("450")

    def test_status_strings_are_accepted(self, lifecycle, test_claim):
        claim = lifecycle.transition(test_claim.id, "approved")
        assert claim.status == APPROVED

    def test_reject(self, lifecycle, test_claim):
        assert lifecycle.transition(test_claim.id, REJECTED).status == REJECTED

    def test_rejected_claim_cannot_be_approved(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, REJECTED)
        with pytest.raises(InvalidTransition) as exc_info:
            lifecycle.transition(test_claim.id, APPROVED)
        assert exc_info.value.to_dict() == {
            "error": "invalid_transition",
            "current": "REJECTED",
            "requested": "APPROVED",
        }

    def test_pending_cannot_be_settled_directly(self, lifecycle, store, test_claim):
        with pytest.raises(InvalidTransition):
            lifecycle.transition(test_claim.id, SETTLED, settled_amount=450)
        claim = store.get(CLAIM, test_claim.id)
        assert claim.status == PENDING
        assert claim.settled_amount is None

    def test_settled_claim_cannot_be_reopened(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        lifecycle.transition(test_claim.id, SETTLED, settled_amount=0)
        for target in (PENDING, APPROVED, REJECTED):
            with pytest.raises(InvalidTransition):
                lifecycle.transition(test_claim.id, target)

    def test_settling_requires_amount(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.transition(test_claim.id, SETTLED)
        assert exc_info.value.errors == {"settled_amount": "required"}

    def test_settled_amount_is_never_defaulted(self, lifecycle, test_claim):
        """The claimed amount is not a fallback for the payout."""
        lifecycle.transition(test_claim.id, APPROVED)
        with pytest.raises(ValidationError):
            lifecycle.transition(test_claim.id, SETTLED, settled_amount=None)

    def test_negative_settlement(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.transition(test_claim.id, SETTLED, settled_amount=-1)
        assert exc_info.value.errors == {"settled_amount": "must_be_non_negative"}

    def test_zero_settlement_is_allowed(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        claim = lifecycle.transition(test_claim.id, SETTLED, settled_amount=0)
        assert claim.settled_amount == Decimal("0")

    def test_settlement_only_with_settled_status(self, lifecycle, test_claim):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.transition(test_claim.id, APPROVED, settled_amount=10)
        assert exc_info.value.errors == {"settled_amount": "only_when_settled"}

    def test_unknown_status(self, lifecycle, test_claim):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.transition(test_claim.id, "ARCHIVED")
        assert exc_info.value.errors == {"status": "invalid_choice"}

    def test_missing_claim(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.transition(5, APPROVED)

    def test_resave_is_idempotent(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, REJECTED)
        claim = lifecycle.transition(test_claim.id, REJECTED)
        assert claim.status == REJECTED
        # created + rejected; the re-save adds no event
        assert [e["status"] for e in claim.timeline] == ["PENDING", "REJECTED"]

    def test_settled_resave_keeps_amount(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        lifecycle.transition(test_claim.id, SETTLED, settled_amount=450)
        claim = lifecycle.transition(test_claim.id, SETTLED)
        assert claim.status == SETTLED
        assert claim.settled_amount == Decimal("450")

    def test_sub_cent_negative_settlement_is_rejected(self, lifecycle, store, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.transition(test_claim.id, SETTLED, settled_amount="-0.004")
        assert exc_info.value.errors == {"settled_amount": "must_be_non_negative"}
        assert store.get(CLAIM, test_claim.id).status == APPROVED

    def test_timeline_records_each_change(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED, actor="reviewer")
        claim = lifecycle.transition(test_claim.id, SETTLED, settled_amount=450, actor="cashier")
        assert [(e["status"], e["actor"]) for e in claim.timeline] == [
            ("PENDING", "anonymous"),
            ("APPROVED", "reviewer"),
            ("SETTLED", "cashier"),
        ]

    @pytest.mark.parametrize(
        "steps",
        [
            [(APPROVED, None), (SETTLED, 450), (REJECTED, None)],
            [(REJECTED, None), (SETTLED, 10), (APPROVED, None)],
            [(SETTLED, 5), (APPROVED, None), (APPROVED, 3), (SETTLED, None), (SETTLED, 7)],
        ],
    )
    def test_settlement_matches_status_after_every_call(self, lifecycle, store, test_claim, steps):
        for target, amount in steps:
            try:
                lifecycle.transition(test_claim.id, target, settled_amount=amount)
            except (InvalidTransition, ValidationError):
                pass
            claim = store.get(CLAIM, test_claim.id)
            assert (claim.settled_amount is not None) == (claim.status == SETTLED)


class TestUpdate:
    """Edit-mode saves combining form fields and status."""

    def test_field_edit_keeps_status(self, lifecycle, test_claim):
        claim = lifecycle.update(test_claim.id, {"description": "rear fender"})
        assert claim.description == "rear fender"
        assert claim.status == PENDING

    def test_fields_and_status_together(self, lifecycle, test_claim):
        claim = lifecycle.update(
            test_claim.id, {"claimed_amount": 650, "status": "APPROVED", "settled_amount": None}
        )
        assert claim.claimed_amount == Decimal("650")
        assert claim.status == APPROVED

    def test_invalid_transition_leaves_fields_untouched(self, lifecycle, store, test_claim):
        with pytest.raises(InvalidTransition):
            lifecycle.update(test_claim.id, {"description": "changed", "status": "SETTLED", "settled_amount": 5})
        claim = store.get(CLAIM, test_claim.id)
        assert claim.description == "fender"
        assert claim.status == PENDING

    def test_field_errors_come_before_transition_errors(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, REJECTED)
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.update(test_claim.id, {"description": " ", "status": "APPROVED"})
        assert exc_info.value.errors == {"description": "required"}

    def test_settled_resave_keeps_amount(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        lifecycle.transition(test_claim.id, SETTLED, settled_amount=450)
        claim = lifecycle.update(test_claim.id, {"description": "fender, settled", "status": "SETTLED"})
        assert claim.settled_amount == Decimal("450")

    def test_settled_amount_can_be_corrected(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        lifecycle.transition(test_claim.id, SETTLED, settled_amount=450)
        claim = lifecycle.update(test_claim.id, {"settled_amount": 425})
        assert claim.settled_amount == Decimal("425")

    def test_settling_through_update_requires_amount(self, lifecycle, test_claim):
        lifecycle.transition(test_claim.id, APPROVED)
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.update(test_claim.id, {"status": "SETTLED"})
        assert exc_info.value.errors == {"settled_amount": "required"}

    def test_settled_amount_on_pending_claim(self, lifecycle, test_claim):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.update(test_claim.id, {"settled_amount": 10})
        assert exc_info.value.errors == {"settled_amount": "only_when_settled"}

    def test_update_missing_claim(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.update(77, {"description": "x"})


def reject_after_read(store, monkeypatch):
    """Make another writer reject the claim right after the engine reads it."""
    original_get = store.get
    claims = Claim.__table__

    def get(kind, record_id, for_update=False):
        claim = original_get(kind, record_id, for_update=for_update)
        store.db.execute(
            claims.update().where(claims.c.id == record_id).values(status=REJECTED)
        )
        return claim

    monkeypatch.setattr(store, "get", get)


class TestConcurrentWriters:
    """A write checked against a stale status is refused, not last-writer-wins."""

    def test_transition_on_stale_status(self, lifecycle, store, test_claim, monkeypatch):
        reject_after_read(store, monkeypatch)
        with pytest.raises(InvalidTransition) as exc_info:
            lifecycle.transition(test_claim.id, APPROVED, actor="reviewer")
        assert exc_info.value.current == "REJECTED"
        assert exc_info.value.requested == "APPROVED"

        monkeypatch.undo()
        claim = store.get(CLAIM, test_claim.id)
        assert claim.status != APPROVED
        assert [e["status"] for e in claim.timeline] == ["PENDING"]

    def test_edit_on_stale_status(self, lifecycle, store, test_claim, monkeypatch):
        reject_after_read(store, monkeypatch)
        with pytest.raises(InvalidTransition):
            lifecycle.update(test_claim.id, {"description": "rear fender"})

        monkeypatch.undo()
        assert store.get(CLAIM, test_claim.id).description == "fender"
