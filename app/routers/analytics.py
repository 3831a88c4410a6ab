from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.db.db import get_session
from app.models.user import User
from app.services import analytics
from app.utils.auth_helper import require_admin


router = APIRouter()


@router.get("/dashboard-stats")
def get_dashboard_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, **analytics.dashboard_stats(session)}


@router.get("/category-analytics")
def get_category_analytics(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, "categories": analytics.category_analytics(session)}


@router.get("/user-activity")
def get_user_activity(
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, **analytics.user_activity(session, limit=limit)}


@router.get("/time-analytics/{period}")
def get_time_analytics(
    period: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    # unknown periods fall back to monthly buckets
    return {"success": True, **analytics.time_analytics(session, period)}


@router.get("/search-analytics")
def get_search_analytics(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, **analytics.search_analytics(session)}


@router.get("/embedded-health")
def get_embedded_health(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return {"success": True, **analytics.embedded_health(session)}
