"""
API dependencies
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from claimdesk.db import get_db
from claimdesk.core import get_current_actor
from claimdesk.services import AggregationService, ClaimLifecycle, EntityStore


def get_store(db: Session = Depends(get_db)) -> EntityStore:
    return EntityStore(db)


def get_lifecycle(store: EntityStore = Depends(get_store)) -> ClaimLifecycle:
    return ClaimLifecycle(store)


def get_aggregation(store: EntityStore = Depends(get_store)) -> AggregationService:
    return AggregationService(store)


__all__ = [
    "get_db",
    "get_current_actor",
    "get_store",
    "get_lifecycle",
    "get_aggregation",
]
