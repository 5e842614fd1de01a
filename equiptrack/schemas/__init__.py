from equiptrack.schemas.location import Location, LocationCreate, LocationUpdate, LocationRef, DeviceRef
from equiptrack.schemas.device import Device, DeviceCreate, DeviceUpdate, DeviceStatus
from equiptrack.schemas.movement import Movement, MovementCreate, LocationConsistency
from equiptrack.schemas.inventory import (
    InventoryEvent, InventoryEventCreate, InventoryEventUpdate,
    InventoryItem, InventoryItemAdded, InventoryItemCreate, InventoryItemUpdate,
    ItemCondition, Tally, InventorySummary, EventReport,
)
from equiptrack.schemas.maintenance import (
    MaintenanceTask, MaintenanceTaskCreate, MaintenanceTaskUpdate, MaintenanceStatus,
)
from equiptrack.schemas.writeoff import WriteOffReport, WriteOffReportCreate, WriteOffReportUpdate, WriteOffStats
from equiptrack.schemas.user import SessionUser, PermissionsResponse

__all__ = [
    "Location", "LocationCreate", "LocationUpdate", "LocationRef", "DeviceRef",
    "Device", "DeviceCreate", "DeviceUpdate", "DeviceStatus",
    "Movement", "MovementCreate", "LocationConsistency",
    "InventoryEvent", "InventoryEventCreate", "InventoryEventUpdate",
    "InventoryItem", "InventoryItemAdded", "InventoryItemCreate", "InventoryItemUpdate",
    "ItemCondition", "Tally", "InventorySummary", "EventReport",
    "MaintenanceTask", "MaintenanceTaskCreate", "MaintenanceTaskUpdate", "MaintenanceStatus",
    "WriteOffReport", "WriteOffReportCreate", "WriteOffReportUpdate", "WriteOffStats",
    "SessionUser", "PermissionsResponse",
]
