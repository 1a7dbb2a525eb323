"""
Request/Response schemas shared by the API routes.

JSON uses camelCase names (``firstName``, ``claimedAmount``); snake_case is
accepted on input as well. Request models take raw JSON values: every check
(types, required fields, amounts, dates, references) is applied by the
validation rules so that all failures in a body are reported together.
"""
import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from claimdesk.db.models import ClaimStatus, PolicyType


def camel_field(name: str) -> str:
    """camelCase for a snake_case field name; other names pass through."""
    return to_camel(name) if "_" in name else name


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def patch(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent, by attribute name."""
        return self.model_dump(exclude_unset=True)


def money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


# Customers

class CustomerRequest(CamelModel):
    first_name: Optional[Any] = None
    last_name: Optional[Any] = None
    email: Optional[Any] = None
    address: Optional[Any] = None
    phone: Optional[Any] = None


class CustomerResponse(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    address: str
    phone: str
    created_at: dt.datetime


# Policies

class PolicyRequest(CamelModel):
    type: Optional[Any] = None
    coverage_amount: Optional[Any] = None
    customer_id: Optional[Any] = None


class PolicyResponse(CamelModel):
    id: int
    type: PolicyType
    coverage_amount: Decimal
    customer_id: int
    created_at: dt.datetime

    @field_serializer("coverage_amount")
    def serialize_coverage(self, value: Decimal) -> Optional[float]:
        return money(value)


class PolicyWithCustomerResponse(CamelModel):
    policy: PolicyResponse
    customer: CustomerResponse


# Claims

class ClaimCreateRequest(CamelModel):
    # No status here: new claims always start PENDING
    date: Optional[Any] = None
    description: Optional[Any] = None
    claimed_amount: Optional[Any] = None
    policy_id: Optional[Any] = None


class ClaimUpdateRequest(ClaimCreateRequest):
    status: Optional[Any] = None
    settled_amount: Optional[Any] = None


class TransitionRequest(CamelModel):
    status: Optional[Any] = None
    settled_amount: Optional[Any] = None


class ClaimResponse(CamelModel):
    id: int
    date: dt.date
    description: str
    claimed_amount: Decimal
    status: ClaimStatus
    settled_amount: Optional[Decimal] = None
    policy_id: int
    timeline: List[Dict[str, Any]] = []
    created_at: dt.datetime

    @field_serializer("claimed_amount", "settled_amount")
    def serialize_money(self, value: Optional[Decimal]) -> Optional[float]:
        return money(value)


# Dashboard

class CountsResponse(CamelModel):
    customer_count: int
    policy_count: int
    claim_count: int


class DashboardSummaryResponse(CamelModel):
    counts: CountsResponse
    claims_by_status: Dict[str, int]
    recent_customers: List[CustomerResponse]
    recent_policies: List[PolicyResponse]
    recent_claims: List[ClaimResponse]
