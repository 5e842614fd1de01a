from fastapi import APIRouter, Depends, Response

from equiptrack.schemas.location import Location, LocationCreate, LocationRef, LocationUpdate
from equiptrack.session import SessionContext, get_session
import equiptrack.services.location_service as svc

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("", response_model=list[Location])
async def location_tree(ctx: SessionContext = Depends(get_session)):
    return await svc.get_location_tree(ctx)


@router.get("/flat", response_model=list[LocationRef])
async def flat_locations(ctx: SessionContext = Depends(get_session)):
    return svc.flatten(await svc.get_location_tree(ctx))


@router.get("/count")
async def location_count(ctx: SessionContext = Depends(get_session)):
    return {"total": svc.count_locations(await svc.get_location_tree(ctx))}


@router.get("/{loc_id}/parent-choices", response_model=list[LocationRef])
async def parent_choices(loc_id: int, ctx: SessionContext = Depends(get_session)):
    return svc.parent_choices(loc_id, await svc.get_location_tree(ctx))


@router.get("/{loc_id}", response_model=Location)
async def get_location(loc_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_location(ctx, loc_id)


@router.post("", response_model=Location, status_code=201)
async def create_location(data: LocationCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.create_location(ctx, data)


@router.put("/{loc_id}", response_model=Location)
async def update_location(loc_id: int, data: LocationUpdate, ctx: SessionContext = Depends(get_session)):
    return await svc.update_location(ctx, loc_id, data)


@router.delete("/{loc_id}", status_code=204)
async def delete_location(loc_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_location(ctx, loc_id)
    return Response(status_code=204)
