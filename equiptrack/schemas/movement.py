from datetime import datetime, timezone
from pydantic import BaseModel, Field


class MovementCreate(BaseModel):
    from_location_id: int | None = None
    to_location_id: int
    moved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str | None = None


class Movement(BaseModel):
    """Append-only záznam přesunu, nikdy se needituje ani nemaže."""

    id: int
    device_id: int
    from_location_id: int | None = None
    to_location_id: int
    moved_at: datetime
    notes: str | None = None
    performed_by: int | None = None

    model_config = {"from_attributes": True}


class ChainBreak(BaseModel):
    movement_id: int
    expected_from_location_id: int | None
    actual_from_location_id: int | None


class LocationConsistency(BaseModel):
    device_id: int
    consistent: bool
    expected_location_id: int | None  # odvozeno z historie přesunů
    actual_location_id: int | None    # current_location_id z backendu
    chain_breaks: list[ChainBreak] = []
