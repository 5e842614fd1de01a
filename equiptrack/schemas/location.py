from pydantic import BaseModel, Field


class DeviceRef(BaseModel):
    id: int
    serial_number: str | None = None
    status: str | None = None

    model_config = {"from_attributes": True}


class LocationBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: int | None = None
    description: str | None = None


class LocationCreate(LocationBase):
    pass


class LocationUpdate(BaseModel):
    name: str | None = None
    parent_id: int | None = None
    description: str | None = None


class Location(LocationBase):
    """Uzel stromu lokací tak, jak ho vrací backend (potomci a zařízení vnořené)."""

    id: int
    children: list["Location"] = []
    devices: list[DeviceRef] = []

    model_config = {"from_attributes": True}


class LocationRef(LocationBase):
    """Zploštělý záznam pro výběrové seznamy."""

    id: int
    depth: int
    display_name: str
    devices: list[DeviceRef] = []
    child_count: int = 0
