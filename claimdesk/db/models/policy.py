"""
Policy database model
"""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from claimdesk.db.base import Base


class PolicyType(str, PyEnum):
    AUTO = "auto"
    HOME = "home"
    MEDICAL = "medical"


class Policy(Base):
    """Insurance policy model, owned by exactly one customer."""

    __tablename__ = "policies"
    __table_args__ = (
        CheckConstraint("coverage_amount >= 0", name="ck_policies_coverage_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(
        Enum(PolicyType, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    coverage_amount = Column(Numeric(12, 2), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("Customer", back_populates="policies")
    claims = relationship("Claim", back_populates="policy", order_by="Claim.id")

    def __repr__(self) -> str:
        return f"<Policy {self.id} ({self.type.value})>"
