# app/activity/routes.py
from fastapi import APIRouter, Depends

from app.activity import services as activity_service
from app.activity.schemas import ActivityOut, DashboardStatsOut
from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.store.base import EntityStore

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
def stats(store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return activity_service.dashboard_stats(store, scope)


@router.get("/activities", response_model=list[ActivityOut])
def activities(store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return activity_service.list_activities(store, scope)
