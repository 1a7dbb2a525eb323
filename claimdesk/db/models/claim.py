"""
Claim database model
"""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, JSON
from sqlalchemy.orm import relationship

from claimdesk.db.base import Base


class ClaimStatus(str, PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SETTLED = "SETTLED"


class Claim(Base):
    """Insurance claim model."""

    __tablename__ = "claims"
    __table_args__ = (
        CheckConstraint("claimed_amount > 0", name="ck_claims_claimed_positive"),
        CheckConstraint(
            "settled_amount IS NULL OR settled_amount >= 0",
            name="ck_claims_settled_non_negative",
        ),
        # settled_amount is present exactly when the claim is settled
        CheckConstraint(
            "(status = 'SETTLED' AND settled_amount IS NOT NULL)"
            " OR (status != 'SETTLED' AND settled_amount IS NULL)",
            name="ck_claims_settlement_matches_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    description = Column(String(2000), nullable=False)
    claimed_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(ClaimStatus), default=ClaimStatus.PENDING, nullable=False)
    settled_amount = Column(Numeric(12, 2), nullable=True)

    # Timeline: list of {status, timestamp, actor, notes}
    timeline = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    policy = relationship("Policy", back_populates="claims")

    def __repr__(self) -> str:
        return f"<Claim {self.id} ({self.status.value})>"

    def add_timeline_event(self, status: str, actor: str, notes: str = "") -> None:
        """Add an event to the claim timeline."""
        # Reassign so the JSON column is flagged dirty
        self.timeline = [
            *(self.timeline or []),
            {
                "status": status,
                "timestamp": datetime.utcnow().isoformat(),
                "actor": actor,
                "notes": notes,
            },
        ]
