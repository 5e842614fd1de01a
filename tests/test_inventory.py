"""Testy inventurních součtů a kontroly položek."""
import asyncio
from datetime import date, datetime, timezone

import pytest

from equiptrack.errors import DuplicateInventoryItem, NotFoundOrStale
from equiptrack.schemas.device import Device
from equiptrack.schemas.inventory import (
    InventoryEvent,
    InventoryEventCreate,
    InventoryItem,
    InventoryItemCreate,
    ItemCondition,
    Tally,
)
from equiptrack.schemas.movement import Movement
from equiptrack.services import inventory_service as svc
from equiptrack.services import location_service


def item(item_id, device_id, found=True, condition="ok", event_id=1):
    return InventoryItem(id=item_id, event_id=event_id, device_id=device_id, found=found, condition=condition)


def event(event_id, items, location_id=1):
    return InventoryEvent(id=event_id, event_date=date(2024, 5, 1), location_id=location_id, items=items)


# ─── tally ───────────────────────────────────────────────────────────────────

def test_tally_empty():
    assert svc.tally([]) == Tally(found_count=0, missing_count=0, problem_count=0)


def test_tally_scenario():
    items = [item(1, 10), item(2, 11, condition="broken"), item(3, 12, found=False)]
    assert svc.tally(items) == Tally(found_count=2, missing_count=1, problem_count=1)


def test_tally_invariants():
    items = [
        item(1, 10, condition="needs_maintenance"),
        item(2, 11, found=False, condition="broken"),
        item(3, 12, found=False),
        item(4, 13),
    ]
    result = svc.tally(items)
    assert result.found_count + result.missing_count == len(items)
    assert result.problem_count == 2
    assert result.problem_count <= len(items)


def test_tally_order_independent():
    items = [item(1, 10), item(2, 11, found=False, condition="broken"), item(3, 12, condition="needs_maintenance")]
    assert svc.tally(items) == svc.tally(list(reversed(items)))


def test_condition_aliases_normalised():
    assert item(1, 10, condition="good").condition is ItemCondition.ok
    assert item(2, 10, condition="damaged").condition is ItemCondition.needs_maintenance
    assert item(3, 10, condition="repair_needed").condition is ItemCondition.broken
    assert svc.tally([item(4, 10, condition="repair_needed")]).problem_count == 1


def test_tally_across_events():
    events = [
        event(1, [item(1, 10), item(2, 11, found=False)]),
        event(2, [item(3, 12, condition="broken", event_id=2)]),
        event(3, []),
    ]
    summary = svc.tally_across_events(events)
    assert summary.found_count == 2
    assert summary.missing_count == 1
    assert summary.problem_count == 1
    assert summary.event_count == 3
    assert summary.total_items == 3


# ─── summarize_event ─────────────────────────────────────────────────────────

def test_summarize_unresolved_device_still_counts():
    devices = [Device(id=10, serial_number="SN-010", type_id=1, current_location_id=1)]
    report = svc.summarize_event(event(1, [item(1, 10), item(2, 99, found=False)]), devices)
    assert report.tally.found_count == 1
    assert report.tally.missing_count == 1
    rows = {r.device_id: r for r in report.rows}
    assert rows[10].serial_number == "SN-010"
    assert rows[99].serial_number == "99"
    assert report.unresolved_device_ids == [99]


def test_summarize_surfaces_misplaced_device():
    devices = [
        Device(id=10, serial_number="SN-010", type_id=1, current_location_id=1),
        Device(id=11, serial_number="SN-011", type_id=1, current_location_id=4),
    ]
    report = svc.summarize_event(event(1, [item(1, 10), item(2, 11)]), devices)
    assert report.misplaced_device_ids == [11]
    assert [r.misplaced for r in report.rows] == [False, True]


def test_validate_new_item_rejects_duplicate():
    ev = event(1, [item(1, 10)])
    svc.validate_new_item(ev, 11)
    with pytest.raises(DuplicateInventoryItem):
        svc.validate_new_item(ev, 10)


# ─── Backend operations ──────────────────────────────────────────────────────

def test_add_item_flags_device_outside_location(make_ctx, fake_backend):
    ctx = make_ctx("admin")
    fake_backend.events[50] = {"id": 50, "event_date": "2024-05-01", "location_id": 2, "notes": None, "performed_by": 1}

    async def scenario():
        inside = await svc.add_item(ctx, 50, InventoryItemCreate(device_id=10))
        outside = await svc.add_item(ctx, 50, InventoryItemCreate(device_id=11, found=False))
        return inside, outside

    inside, outside = asyncio.run(scenario())
    assert inside.device_at_location is True
    assert outside.device_at_location is False
    assert len(fake_backend.items) == 2


def test_add_item_duplicate_uses_fresh_event(make_ctx, fake_backend):
    ctx = make_ctx("admin")
    fake_backend.events[50] = {"id": 50, "event_date": "2024-05-01", "location_id": 2, "notes": None, "performed_by": 1}
    asyncio.run(svc.get_event(ctx, 50))  # v cache zatím bez položek
    fake_backend.items[60] = {"id": 60, "event_id": 50, "device_id": 10, "found": True, "condition": "ok", "comments": None}

    with pytest.raises(DuplicateInventoryItem):
        asyncio.run(svc.add_item(ctx, 50, InventoryItemCreate(device_id=10)))
    assert not fake_backend.posted("/inventory-events/50/items")


# ─── Location on the event date ──────────────────────────────────────────────

def moved(movement_id, from_id, to_id, day, device_id=10):
    return Movement(
        id=movement_id, device_id=device_id, from_location_id=from_id, to_location_id=to_id,
        moved_at=datetime(day.year, day.month, day.day, 14, tzinfo=timezone.utc),
    )


def test_device_moved_after_audit_not_misplaced():
    devices = [Device(id=10, serial_number="SN-010", type_id=1, current_location_id=4)]
    history = [moved(1, None, 2, date(2023, 12, 1)), moved(2, 2, 4, date(2024, 2, 1))]
    ev = InventoryEvent(id=1, event_date=date(2024, 1, 1), location_id=2, items=[item(1, 10)])

    report = svc.summarize_event(ev, devices, {10: history})
    assert report.misplaced_device_ids == []
    assert report.rows[0].misplaced is False


def test_device_arrived_after_audit_is_misplaced():
    devices = [Device(id=10, serial_number="SN-010", type_id=1, current_location_id=2)]
    history = [moved(1, None, 4, date(2023, 12, 1)), moved(2, 4, 2, date(2024, 1, 2))]
    ev = InventoryEvent(id=1, event_date=date(2024, 1, 1), location_id=2, items=[item(1, 10)])
    assert svc.summarize_event(ev, devices, {10: history}).misplaced_device_ids == [10]


def test_movement_on_event_day_counts():
    history = [moved(1, None, 4, date(2023, 12, 1)), moved(2, 4, 2, date(2024, 1, 1))]
    ev = InventoryEvent(id=1, event_date=date(2024, 1, 1), location_id=2)
    device = Device(id=10, serial_number="SN-010", type_id=1, current_location_id=2)
    assert svc.location_at_event(ev, device, {10: history}) == 2


def test_event_report_uses_location_at_event_date(make_ctx, fake_backend):
    # SN-011 stálo od 5. 1. ve Skladu (4), 1. 2. přesunuto do Racku 1 (3)
    fake_backend.events[50] = {"id": 50, "event_date": "2024-01-20", "location_id": 4, "notes": None, "performed_by": 1}
    fake_backend.items[60] = {"id": 60, "event_id": 50, "device_id": 11, "found": True, "condition": "ok", "comments": None}

    report = asyncio.run(svc.get_event_report(make_ctx("admin"), 50))
    assert report.misplaced_device_ids == []


def test_add_item_checks_location_at_event_date(make_ctx, fake_backend):
    fake_backend.events[50] = {"id": 50, "event_date": "2024-01-20", "location_id": 4, "notes": None, "performed_by": 1}
    added = asyncio.run(svc.add_item(make_ctx("admin"), 50, InventoryItemCreate(device_id=11)))
    assert added.device_at_location is True


def test_create_event_conflict_invalidates_locations(make_ctx, fake_backend):
    ctx = make_ctx("admin")
    asyncio.run(location_service.get_location_tree(ctx))
    fake_backend.fail_with[("POST", "/inventory-events")] = 409

    with pytest.raises(NotFoundOrStale):
        asyncio.run(svc.create_event(ctx, InventoryEventCreate(event_date=date(2024, 5, 1), location_id=4)))
    assert not ctx.cache.is_fresh(location_service.TREE_KEY)
