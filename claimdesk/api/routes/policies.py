"""
Policies API routes
"""
from typing import List

from fastapi import APIRouter, Depends, status

from claimdesk.api.deps import get_current_actor, get_store
from claimdesk.api.schemas import (
    ClaimResponse,
    PolicyRequest,
    PolicyResponse,
    PolicyWithCustomerResponse,
)
from claimdesk.services import CLAIM, POLICY, EntityStore

router = APIRouter()


@router.post("/", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
def create_policy(
    request: PolicyRequest,
    actor: str = Depends(get_current_actor),
    store: EntityStore = Depends(get_store),
):
    """Create a policy for an existing customer."""
    return store.create(POLICY, request.patch(), actor=actor)


@router.get("/", response_model=List[PolicyResponse])
def list_policies(store: EntityStore = Depends(get_store)):
    return store.list(POLICY)


@router.get("/with-customers", response_model=List[PolicyWithCustomerResponse])
def list_policies_with_customers(store: EntityStore = Depends(get_store)):
    """Every policy paired with its owner, as used by the claim form's policy picker."""
    return [
        {"policy": policy, "customer": policy.customer}
        for policy in store.list(POLICY)
    ]


@router.get("/{policy_id}", response_model=PolicyResponse)
def get_policy(policy_id: int, store: EntityStore = Depends(get_store)):
    return store.get(POLICY, policy_id)


@router.patch("/{policy_id}", response_model=PolicyResponse)
def update_policy(
    policy_id: int,
    request: PolicyRequest,
    actor: str = Depends(get_current_actor),
    store: EntityStore = Depends(get_store),
):
    return store.update(POLICY, policy_id, request.patch(), actor=actor)


@router.get("/{policy_id}/claims", response_model=List[ClaimResponse])
def get_policy_claims(policy_id: int, store: EntityStore = Depends(get_store)):
    """Claims filed against a policy, oldest first."""
    store.get(POLICY, policy_id)
    return store.list(CLAIM, policy_id=policy_id)
