from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from equiptrack.schemas.inventory import (
    EventReport,
    InventoryEvent,
    InventoryEventCreate,
    InventoryEventUpdate,
    InventoryItem,
    InventoryItemAdded,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventorySummary,
)
from equiptrack.session import SessionContext, get_session
import equiptrack.services.inventory_service as svc

router = APIRouter(prefix="/api", tags=["inventory"])


@router.get("/inventory-events", response_model=list[InventoryEvent])
async def list_events(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    location_id: int | None = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.list_events(
        ctx, date_from=date_from, date_to=date_to, location_id=location_id, offset=offset, limit=limit
    )


@router.get("/inventory-events/summary", response_model=InventorySummary)
async def events_summary(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    location_id: int | None = Query(None),
    ctx: SessionContext = Depends(get_session),
):
    return await svc.get_summary(ctx, date_from=date_from, date_to=date_to, location_id=location_id)


@router.post("/inventory-events", response_model=InventoryEvent, status_code=201)
async def create_event(data: InventoryEventCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.create_event(ctx, data)


@router.get("/inventory-events/{event_id}", response_model=InventoryEvent)
async def get_event(event_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_event(ctx, event_id)


@router.put("/inventory-events/{event_id}", response_model=InventoryEvent)
async def update_event(event_id: int, data: InventoryEventUpdate, ctx: SessionContext = Depends(get_session)):
    return await svc.update_event(ctx, event_id, data)


@router.delete("/inventory-events/{event_id}", status_code=204)
async def delete_event(event_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_event(ctx, event_id)
    return Response(status_code=204)


@router.get("/inventory-events/{event_id}/report", response_model=EventReport)
async def event_report(event_id: int, ctx: SessionContext = Depends(get_session)):
    return await svc.get_event_report(ctx, event_id)


@router.post("/inventory-events/{event_id}/items", response_model=InventoryItemAdded, status_code=201)
async def add_item(event_id: int, data: InventoryItemCreate, ctx: SessionContext = Depends(get_session)):
    return await svc.add_item(ctx, event_id, data)


@router.put("/inventory-items/{item_id}", response_model=InventoryItem)
async def update_item(item_id: int, data: InventoryItemUpdate, ctx: SessionContext = Depends(get_session)):
    return await svc.update_item(ctx, item_id, data)


@router.delete("/inventory-items/{item_id}", status_code=204)
async def delete_item(item_id: int, ctx: SessionContext = Depends(get_session)):
    await svc.delete_item(ctx, item_id)
    return Response(status_code=204)
