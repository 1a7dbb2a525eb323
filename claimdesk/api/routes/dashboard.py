"""
Dashboard API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from claimdesk.api.deps import get_aggregation
from claimdesk.api.schemas import DashboardSummaryResponse
from claimdesk.services import AggregationService

router = APIRouter()


@router.get("/summary", response_model=DashboardSummaryResponse)
def dashboard_summary(
    limit: Optional[int] = Query(default=None, description="Recent items per list"),
    aggregation: AggregationService = Depends(get_aggregation),
):
    """Entity counts, claims per status and the most recent records of each kind."""
    # Validated here: the summary is a dataclass holding ORM rows
    return DashboardSummaryResponse.model_validate(aggregation.dashboard_summary(limit))
