from fastapi import APIRouter, Depends, Query, Response

from equiptrack.schemas.maintenance import (
    MaintenanceStatus,
    MaintenanceTask,
    MaintenanceTaskCreate,
    MaintenanceTaskUpdate,
)
from equiptrack.session import SessionContext, get_session
import equiptrack.services.maintenance_service as svc

router = APIRouter(prefix="/api/maintenance-tasks", tags=["maintenance"])


@router.get("", response_model=list[MaintenanceTask])
async def list_tasks(
    status: MaintenanceStatus | None = Query(None),
    device_id: int | None = Query(None),
    assigned_to: int | None = Query(None),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.list_tasks(ctx, status=status, device_id=device_id, assigned_to=assigned_to)


@router.post("", response_model=MaintenanceTask, status_code=201)
async def create_task(data: MaintenanceTaskCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.create_task(ctx, data)


@router.get("/{task_id}", response_model=MaintenanceTask)
async def get_task(task_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_task(ctx, task_id)


@router.get("/{task_id}/allowed-statuses", response_model=list[MaintenanceStatus])
async def allowed_statuses(task_id: int, ctx: SessionContext = Depends(get_session)):
    task = await svc.get_task(ctx, task_id)
    allowed = ctx.permissions.allowed_status_transitions(task.status)
    return [s for s in MaintenanceStatus if s in allowed]


@router.put("/{task_id}", response_model=MaintenanceTask)
async def update_task(
    task_id: int,
    data: MaintenanceTaskUpdate,
    strict: bool = Query(False, description="Odmítnout místo zahození polí, která smí měnit jen admin"),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.update_task(ctx, task_id, data, strict=strict)


@router.delete("/{task_id}", status_code=204)
async def delete_task(task_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_task(ctx, task_id)
    return Response(status_code=204)
