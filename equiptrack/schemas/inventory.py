import enum
from datetime import date
from pydantic import BaseModel, Field


class ItemCondition(str, enum.Enum):
    ok = "ok"
    needs_maintenance = "needs_maintenance"
    broken = "broken"

    @classmethod
    def _missing_(cls, value):
        # Starší verze backendu používají jiné názvy stavů
        return _CONDITION_ALIASES.get(value)


_CONDITION_ALIASES = {
    "good": ItemCondition.ok,
    "damaged": ItemCondition.needs_maintenance,
    "repair_needed": ItemCondition.broken,
}

PROBLEM_CONDITIONS = frozenset({ItemCondition.needs_maintenance, ItemCondition.broken})


class InventoryItemCreate(BaseModel):
    device_id: int
    found: bool = True
    condition: ItemCondition = ItemCondition.ok
    comments: str | None = None


class InventoryItemUpdate(BaseModel):
    found: bool | None = None
    condition: ItemCondition | None = None
    comments: str | None = None


class InventoryItem(BaseModel):
    id: int
    event_id: int
    device_id: int
    found: bool
    condition: ItemCondition = ItemCondition.ok
    comments: str | None = None

    model_config = {"from_attributes": True}


class InventoryItemAdded(BaseModel):
    item: InventoryItem
    device_at_location: bool  # False = zařízení je podle evidence jinde


class InventoryEventCreate(BaseModel):
    event_date: date
    location_id: int
    notes: str | None = None


class InventoryEventUpdate(BaseModel):
    event_date: date | None = None
    location_id: int | None = None
    notes: str | None = None


class InventoryEvent(BaseModel):
    id: int
    event_date: date
    location_id: int
    notes: str | None = None
    performed_by: int | None = None
    items: list[InventoryItem] = []

    model_config = {"from_attributes": True}


class Tally(BaseModel):
    found_count: int = Field(0, ge=0)
    missing_count: int = Field(0, ge=0)
    problem_count: int = Field(0, ge=0)

    def __add__(self, other: "Tally") -> "Tally":
        return Tally(
            found_count=self.found_count + other.found_count,
            missing_count=self.missing_count + other.missing_count,
            problem_count=self.problem_count + other.problem_count,
        )


class InventorySummary(Tally):
    event_count: int = 0
    total_items: int = 0


class ItemRow(BaseModel):
    item_id: int
    device_id: int
    serial_number: str  # fallback na ID zařízení, pokud zařízení není načteno
    found: bool
    condition: ItemCondition
    comments: str | None = None
    misplaced: bool = False


class EventReport(BaseModel):
    event_id: int
    location_id: int
    event_date: date
    tally: Tally
    rows: list[ItemRow]
    misplaced_device_ids: list[int] = []
    unresolved_device_ids: list[int] = []
