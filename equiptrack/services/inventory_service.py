import logging
from datetime import date

from equiptrack.errors import DuplicateInventoryItem
from equiptrack.schemas.device import Device
from equiptrack.schemas.inventory import (
    PROBLEM_CONDITIONS,
    EventReport,
    InventoryEvent,
    InventoryEventCreate,
    InventoryEventUpdate,
    InventoryItem,
    InventoryItemAdded,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventorySummary,
    ItemRow,
    Tally,
)
from equiptrack.schemas.movement import Movement
from equiptrack.services import device_service, movement_service
from equiptrack.session import SessionContext

logger = logging.getLogger(__name__)


# ── Pure reconciliation ─────────────────────────────────────────────────────

def tally(items: list[InventoryItem]) -> Tally:
    found = sum(1 for i in items if i.found)
    problems = sum(1 for i in items if i.condition in PROBLEM_CONDITIONS)
    return Tally(found_count=found, missing_count=len(items) - found, problem_count=problems)


def tally_across_events(events: list[InventoryEvent]) -> InventorySummary:
    total = Tally()
    for event in events:
        total = total + tally(event.items)
    return InventorySummary(
        **total.model_dump(),
        event_count=len(events),
        total_items=sum(len(e.items) for e in events),
    )


def location_at_event(event: InventoryEvent, device: Device, histories: dict[int, list[Movement]]) -> int | None:
    """Kde zařízení bylo v den inventury; bez historie se bere současná lokace."""
    history = histories.get(device.id)
    if history is None:
        return device.current_location_id
    return movement_service.location_on(history, event.event_date)


def summarize_event(
    event: InventoryEvent,
    devices: list[Device],
    histories: dict[int, list[Movement]] | None = None,
) -> EventReport:
    """Tally plus řádky pro zobrazení.

    Položka, jejíž zařízení není mezi načtenými, se do součtů počítá normálně;
    jen místo sériového čísla ukáže ID zařízení. Mimo lokaci je zařízení,
    které v den inventury podle historie přesunů stálo jinde.
    """
    by_id = {d.id: d for d in devices}
    histories = histories or {}
    rows = []
    misplaced = []
    unresolved = []
    for item in event.items:
        device = by_id.get(item.device_id)
        if device is None:
            unresolved.append(item.device_id)
        is_misplaced = device is not None and location_at_event(event, device, histories) != event.location_id
        if is_misplaced:
            misplaced.append(item.device_id)
        rows.append(ItemRow(
            item_id=item.id,
            device_id=item.device_id,
            serial_number=device.serial_number if device else str(item.device_id),
            found=item.found,
            condition=item.condition,
            comments=item.comments,
            misplaced=is_misplaced,
        ))
    return EventReport(
        event_id=event.id,
        location_id=event.location_id,
        event_date=event.event_date,
        tally=tally(event.items),
        rows=rows,
        misplaced_device_ids=misplaced,
        unresolved_device_ids=unresolved,
    )


def validate_new_item(event: InventoryEvent, device_id: int) -> None:
    if any(i.device_id == device_id for i in event.items):
        raise DuplicateInventoryItem(f"Zařízení #{device_id} už je v této inventuře zapsáno")


# ── Backend operations ──────────────────────────────────────────────────────

async def list_events(
    ctx: SessionContext,
    date_from: date | None = None,
    date_to: date | None = None,
    location_id: int | None = None,
    offset: int = 0,
    limit: int = 100,
) -> list[InventoryEvent]:
    params = {
        "date_from": date_from.isoformat() if date_from else None,
        "date_to": date_to.isoformat() if date_to else None,
        "location_id": location_id,
        "offset": offset,
        "limit": limit,
    }

    async def _fetch():
        data = await ctx.backend.get("/inventory-events", ctx.creds, params=params)
        return [InventoryEvent.model_validate(d) for d in data]

    key = ("inventory-events", "list", tuple(sorted((k, v) for k, v in params.items() if v is not None)))
    return await ctx.cache.get_or_fetch(key, _fetch)


async def get_event(ctx: SessionContext, event_id: int, fresh: bool = False) -> InventoryEvent:
    key = ("inventory-events", event_id)

    async def _fetch():
        return InventoryEvent.model_validate(await ctx.backend.get(f"/inventory-events/{event_id}", ctx.creds))

    with ctx.stale_guard("inventory-events"):
        if fresh:
            event = await _fetch()
            ctx.cache.set_data(key, event)
            return event
        return await ctx.cache.get_or_fetch(key, _fetch)


async def get_summary(ctx: SessionContext, **filters) -> InventorySummary:
    return tally_across_events(await list_events(ctx, **filters))


async def get_event_report(ctx: SessionContext, event_id: int) -> EventReport:
    event = await get_event(ctx, event_id)
    devices = await device_service.list_devices(ctx)
    known = {d.id for d in devices}
    histories = await movement_service.get_histories(
        ctx, [i.device_id for i in event.items if i.device_id in known]
    )
    report = summarize_event(event, devices, histories)
    if report.misplaced_device_ids:
        logger.warning(
            "Inventura #%s: zařízení %s nejsou podle evidence v lokaci #%s",
            event_id, report.misplaced_device_ids, event.location_id,
        )
    return report


async def create_event(ctx: SessionContext, data: InventoryEventCreate) -> InventoryEvent:
    # 404/409 tu obvykle znamená lokaci smazanou jinou session
    with ctx.stale_guard("inventory-events"), ctx.stale_guard("locations"):
        event = InventoryEvent.model_validate(
            await ctx.backend.post("/inventory-events", ctx.creds, json=data.model_dump(mode="json"))
        )
    ctx.cache.invalidate("inventory-events")
    logger.info("Založena inventura #%s lokace #%s", event.id, event.location_id)
    return event


async def update_event(ctx: SessionContext, event_id: int, data: InventoryEventUpdate) -> InventoryEvent:
    with ctx.stale_guard("inventory-events"):
        event = InventoryEvent.model_validate(await ctx.backend.put(
            f"/inventory-events/{event_id}", ctx.creds, json=data.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("inventory-events")
    return event


async def delete_event(ctx: SessionContext, event_id: int) -> None:
    with ctx.stale_guard("inventory-events"):
        await ctx.backend.delete(f"/inventory-events/{event_id}", ctx.creds)
    ctx.cache.invalidate("inventory-events")
    logger.info("Smazána inventura #%s", event_id)


async def add_item(ctx: SessionContext, event_id: int, data: InventoryItemCreate) -> InventoryItemAdded:
    event = await get_event(ctx, event_id, fresh=True)
    validate_new_item(event, data.device_id)

    histories = await movement_service.get_histories(ctx, [data.device_id])
    location = movement_service.location_on(histories[data.device_id], event.event_date)
    device_at_location = location == event.location_id
    if not device_at_location:
        logger.warning(
            "Inventura #%s: zařízení #%s nebylo v den inventury podle evidence v lokaci #%s",
            event_id, data.device_id, event.location_id,
        )

    with ctx.stale_guard("inventory-events"):
        item = InventoryItem.model_validate(await ctx.backend.post(
            f"/inventory-events/{event_id}/items", ctx.creds, json=data.model_dump(mode="json")
        ))
    ctx.cache.invalidate("inventory-events")
    return InventoryItemAdded(item=item, device_at_location=device_at_location)


async def update_item(ctx: SessionContext, item_id: int, data: InventoryItemUpdate) -> InventoryItem:
    with ctx.stale_guard("inventory-events"):
        item = InventoryItem.model_validate(await ctx.backend.put(
            f"/inventory-items/{item_id}", ctx.creds, json=data.model_dump(mode="json", exclude_unset=True)
        ))
    ctx.cache.invalidate("inventory-events")
    return item


async def delete_item(ctx: SessionContext, item_id: int) -> None:
    with ctx.stale_guard("inventory-events"):
        await ctx.backend.delete(f"/inventory-items/{item_id}", ctx.creds)
    ctx.cache.invalidate("inventory-events")
