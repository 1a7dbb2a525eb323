"""
Customers API routes
"""
from typing import List

from fastapi import APIRouter, Depends, status

from claimdesk.api.deps import get_current_actor, get_store
from claimdesk.api.schemas import CustomerRequest, CustomerResponse, PolicyResponse
from claimdesk.services import CUSTOMER, POLICY, EntityStore

router = APIRouter()


@router.post("/", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    request: CustomerRequest,
    actor: str = Depends(get_current_actor),
    store: EntityStore = Depends(get_store),
):
    """Register a new customer."""
    return store.create(CUSTOMER, request.patch(), actor=actor)


@router.get("/", response_model=List[CustomerResponse])
def list_customers(store: EntityStore = Depends(get_store)):
    """All customers in creation order."""
    return store.list(CUSTOMER)


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, store: EntityStore = Depends(get_store)):
    return store.get(CUSTOMER, customer_id)


@router.api_route("/{customer_id}", methods=["PATCH", "PUT"], response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request: CustomerRequest,
    actor: str = Depends(get_current_actor),
    store: EntityStore = Depends(get_store),
):
    """Update customer details; only the fields sent are changed."""
    return store.update(CUSTOMER, customer_id, request.patch(), actor=actor)


@router.get("/{customer_id}/policies", response_model=List[PolicyResponse])
def get_customer_policies(customer_id: int, store: EntityStore = Depends(get_store)):
    """Policies owned by a customer."""
    store.get(CUSTOMER, customer_id)
    return store.list(POLICY, customer_id=customer_id)
