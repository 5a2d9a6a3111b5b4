"""Dashboard overview routes."""

from fastapi import APIRouter, Query

from app.api.deps import CurrentScenario, CurrentUser, DB
from app.services.dashboard_service import DashboardService
from app.utils.envelopes import api_success

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/overview", response_model=dict)
async def get_dashboard_overview(current_user: CurrentUser, scenario: CurrentScenario, db: DB):
    """Listing totals per domain; requires dashboard access."""
    overview = await DashboardService.get_overview(db, current_user.id, scenario)
    return api_success(overview.model_dump())


@router.get("/dashboard/analytics", response_model=dict)
async def get_dashboard_analytics(
    current_user: CurrentUser,
    scenario: CurrentScenario,
    db: DB,
    top: int = Query(5, ge=1, le=20),
):
    """Views and WhatsApp clicks; requires a plan with analytics."""
    analytics = await DashboardService.get_analytics(db, current_user.id, scenario, top=top)
    return api_success(analytics.model_dump())
