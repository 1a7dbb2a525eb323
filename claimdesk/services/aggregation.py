"""
Aggregation Service
Read-only dashboard projections, recomputed from the store on every call.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from claimdesk.core.config import settings
from claimdesk.db.models import Claim, ClaimStatus
from claimdesk.services.store import CLAIM, CUSTOMER, POLICY, EntityStore


@dataclass
class Counts:
    """Cardinality of each entity list."""
    customer_count: int
    policy_count: int
    claim_count: int


@dataclass
class DashboardSummary:
    counts: Counts
    claims_by_status: Dict[str, int]
    recent_customers: List[Any] = field(default_factory=list)
    recent_policies: List[Any] = field(default_factory=list)
    recent_claims: List[Any] = field(default_factory=list)


class AggregationService:
    """Counts and "recent N" views over customers, policies and claims."""

    def __init__(self, store: EntityStore):
        self.store = store

    def counts(self) -> Counts:
        return Counts(
            customer_count=self.store.count(CUSTOMER),
            policy_count=self.store.count(POLICY),
            claim_count=self.store.count(CLAIM),
        )

    def recent(self, kind: str, n: int) -> List[Any]:
        """Most recently created first; all records if fewer than ``n``; none if n <= 0."""
        return self.store.recent(kind, n)

    def claims_by_status(self) -> Dict[str, int]:
        """Claim count per status, every status present."""
        rows = (
            self.store.db.query(Claim.status, func.count(Claim.id))
            .group_by(Claim.status)
            .all()
        )
        counts = {status.value: 0 for status in ClaimStatus}
        for status, count in rows:
            counts[ClaimStatus(status).value] = count
        return counts

    def dashboard_summary(self, limit: Optional[int] = None) -> DashboardSummary:
        n = settings.RECENT_ITEMS_LIMIT if limit is None else limit
        return DashboardSummary(
            counts=self.counts(),
            claims_by_status=self.claims_by_status(),
            recent_customers=self.recent(CUSTOMER, n),
            recent_policies=self.recent(POLICY, n),
            recent_claims=self.recent(CLAIM, n),
        )
