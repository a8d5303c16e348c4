from fastapi import APIRouter, Depends

from ..core.permissions import PERM_VIEW_GLOBAL_DASHBOARD, PERM_VIEW_OWN_DASHBOARD
from ..core.security import Actor, require_permission
from ..services.statistics import StatisticsService
from .deps import get_statistics

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def dashboard_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_GLOBAL_DASHBOARD)),
):
    """
    Global dashboard: totals, today/week/month windows, breakdowns, the daily
    trend, top diagnoses, recent records and active disasters.
    """
    return stats.dashboard()


@router.get("/user")
def user_dashboard(
    stats: StatisticsService = Depends(get_statistics),
    actor: Actor = Depends(require_permission(PERM_VIEW_OWN_DASHBOARD)),
):
    """The caller's own counters and most recent entries."""
    return stats.user_dashboard(actor.id)
