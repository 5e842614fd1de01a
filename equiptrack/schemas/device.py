import enum
from datetime import date
from pydantic import BaseModel, Field


class DeviceStatus(str, enum.Enum):
    active = "active"
    maintenance = "maintenance"
    storage = "storage"
    repair = "repair"
    decommissioned = "decommissioned"


class CurrentLocation(BaseModel):
    id: int
    name: str | None = None


class DeviceBase(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=128)
    type_id: int
    status: DeviceStatus = DeviceStatus.active
    purchase_date: date | None = None
    warranty_end: date | None = None


class DeviceCreate(DeviceBase):
    """Nové zařízení nemá lokaci, umístí se až prvním přesunem."""


class DeviceUpdate(BaseModel):
    serial_number: str | None = None
    type_id: int | None = None
    status: DeviceStatus | None = None
    purchase_date: date | None = None
    warranty_end: date | None = None


class Device(DeviceBase):
    id: int
    current_location_id: int | None = None
    current_location: CurrentLocation | None = None
    created_by: int | None = None

    model_config = {"from_attributes": True}
