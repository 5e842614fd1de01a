from datetime import date
from pydantic import BaseModel, Field, field_validator


class WriteOffReportCreate(BaseModel):
    device_id: int
    report_date: date
    reason: str = Field(..., max_length=2000)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Důvod odpisu musí být vyplněn")
        return v.strip()


class WriteOffReportUpdate(BaseModel):
    report_date: date | None = None
    reason: str | None = None


class WriteOffReport(BaseModel):
    id: int
    device_id: int
    report_date: date
    reason: str
    disposed_by: int | None = None
    approved_by: int | None = None  # None = čeká na schválení

    model_config = {"from_attributes": True}

    @property
    def is_approved(self) -> bool:
        return self.approved_by is not None


class WriteOffStats(BaseModel):
    total: int
    approved: int
    pending: int
