from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from admin_console.api.v1.schemas import DashboardSchema, EditTargetRequestSchema, RefreshResponseSchema
from admin_console.application.exceptions import CategoryNotFoundError
from admin_console.application.use_cases.dashboard_store import DashboardStore
from admin_console.wiring.dependencies import get_dashboard

router = APIRouter()


@router.get("", response_model=DashboardSchema)
def read_dashboard(dashboard: DashboardStore = Depends(get_dashboard)):
    return DashboardSchema.from_snapshot(dashboard.snapshot)


@router.post("/refresh", response_model=RefreshResponseSchema)
async def refresh_dashboard(dashboard: DashboardStore = Depends(get_dashboard)):
    success = await dashboard.refresh()
    return RefreshResponseSchema(success=success, error=dashboard.snapshot.last_refresh_error)


@router.put("/category-edit-target", response_model=DashboardSchema)
def set_category_edit_target(
    req: EditTargetRequestSchema,
    dashboard: DashboardStore = Depends(get_dashboard),
):
    try:
        dashboard.set_category_edit_target(req.category_id)
    except CategoryNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return DashboardSchema.from_snapshot(dashboard.snapshot)
