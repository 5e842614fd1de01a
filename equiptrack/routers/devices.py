from fastapi import APIRouter, Depends, Query, Response

from equiptrack.schemas.device import Device, DeviceCreate, DeviceStatus, DeviceUpdate
from equiptrack.schemas.movement import LocationConsistency, Movement, MovementCreate
from equiptrack.session import SessionContext, get_session
import equiptrack.services.device_service as svc
import equiptrack.services.movement_service as move_svc

router = APIRouter(prefix="/api/devices", tags=["devices"])


@router.get("", response_model=list[Device])
async def list_devices(
    current_location_id: int | None = Query(None),
    status: DeviceStatus | None = Query(None),
    type_id: int | None = Query(None),
    search: str | None = Query(None, description="Hledat dle sériového čísla"),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.list_devices(
        ctx,
        current_location_id=current_location_id,
        status=status.value if status else None,
        type_id=type_id,
        search=search,
    )


@router.post("", response_model=Device, status_code=201)
async def create_device(data: DeviceCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.create_device(ctx, data)


@router.get("/{device_id}", response_model=Device)
async def get_device(device_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_device(ctx, device_id)


@router.put("/{device_id}", response_model=Device)
async def update_device(device_id: int, data: DeviceUpdate, ctx: SessionContext = Depends(get_session)):
    return await svc.update_device(ctx, device_id, data)


@router.delete("/{device_id}", status_code=204)
async def delete_device(device_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_device(ctx, device_id)
    return Response(status_code=204)


@router.get("/{device_id}/movements", response_model=list[Movement])
async def device_movements(device_id: int, ctx: SessionContext = Depends(get_session)):
    return await move_svc.get_device_movements(ctx, device_id)


@router.post("/{device_id}/movements", response_model=Movement, status_code=201)
async def create_movement(device_id: int, data: MovementCreate, ctx: SessionContext = Depends(get_session)):
    return await move_svc.create_movement(ctx, device_id, data)


@router.get("/{device_id}/location-check", response_model=LocationConsistency)
async def location_check(device_id: int, ctx: SessionContext = Depends(get_session)):
    return await move_svc.get_location_check(ctx, device_id)
