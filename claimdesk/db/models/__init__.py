"""
Database models package
"""
from claimdesk.db.models.customer import Customer
from claimdesk.db.models.policy import Policy, PolicyType
from claimdesk.db.models.claim import Claim, ClaimStatus

__all__ = [
    # Customer
    "Customer",
    # Policy
    "Policy",
    "PolicyType",
    # Claim
    "Claim",
    "ClaimStatus",
]
