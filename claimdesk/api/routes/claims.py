"""
Claims API routes
"""
from typing import List

from fastapi import APIRouter, Depends, status

from claimdesk.api.deps import get_current_actor, get_lifecycle, get_store
from claimdesk.api.schemas import (
    ClaimCreateRequest,
    ClaimResponse,
    ClaimUpdateRequest,
    TransitionRequest,
)
from claimdesk.services import CLAIM, ClaimLifecycle, EntityStore

router = APIRouter()


@router.post("/", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
def create_claim(
    request: ClaimCreateRequest,
    actor: str = Depends(get_current_actor),
    lifecycle: ClaimLifecycle = Depends(get_lifecycle),
):
    """Submit a new claim; it always starts PENDING."""
    return lifecycle.submit(request.patch(), actor=actor)


@router.get("/", response_model=List[ClaimResponse])
def list_claims(store: EntityStore = Depends(get_store)):
    return store.list(CLAIM)


@router.get("/{claim_id}", response_model=ClaimResponse)
def get_claim(claim_id: int, store: EntityStore = Depends(get_store)):
    """Get claim details by ID."""
    return store.get(CLAIM, claim_id)


@router.api_route("/{claim_id}", methods=["PATCH", "PUT"], response_model=ClaimResponse)
def update_claim(
    claim_id: int,
    request: ClaimUpdateRequest,
    actor: str = Depends(get_current_actor),
    lifecycle: ClaimLifecycle = Depends(get_lifecycle),
):
    """Edit a claim; a status change must follow the claim lifecycle."""
    return lifecycle.update(claim_id, request.patch(), actor=actor)


@router.post("/{claim_id}/transition", response_model=ClaimResponse)
def transition_claim(
    claim_id: int,
    request: TransitionRequest,
    actor: str = Depends(get_current_actor),
    lifecycle: ClaimLifecycle = Depends(get_lifecycle),
):
    """Move a claim to a new status (approve, reject or settle)."""
    return lifecycle.transition(
        claim_id,
        request.status,
        settled_amount=request.settled_amount,
        actor=actor,
    )
