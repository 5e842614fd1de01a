import enum
from datetime import date
from pydantic import BaseModel, Field


class MaintenanceStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class MaintenanceTaskCreate(BaseModel):
    device_id: int
    task_type: str = Field(..., min_length=1, max_length=255)
    scheduled_date: date
    assigned_to: int | None = None
    notes: str | None = None


class MaintenanceTaskUpdate(BaseModel):
    status: MaintenanceStatus | None = None
    notes: str | None = None
    # Pouze admin
    scheduled_date: date | None = None
    completed_date: date | None = None
    assigned_to: int | None = None


class MaintenanceTask(BaseModel):
    id: int
    device_id: int
    task_type: str
    scheduled_date: date
    completed_date: date | None = None
    status: MaintenanceStatus = MaintenanceStatus.pending
    assigned_to: int | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}
