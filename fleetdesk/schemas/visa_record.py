"""Schemas visites / Visa and inspection record schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict

from fleetdesk.models.visa_record import VisaRecordType


class VisaInspectionCreate(BaseModel):
    vehicle_id: int
    type: VisaRecordType
    date: dt.date
    expiration_date: dt.date
    cost: float = 0.0
    notes: str | None = None


class VisaInspectionUpdate(BaseModel):
    vehicle_id: int | None = None
    type: VisaRecordType | None = None
    date: dt.date | None = None
    expiration_date: dt.date | None = None
    cost: float | None = None
    notes: str | None = None


class VisaInspectionRead(VisaInspectionCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    days_left: int | None = None
    progress: float = 0.0


class ExpirySummary(BaseModel):
    tracked: int
    expired: int
    upcoming: int
    next_expiration: dt.date | None = None
    total_cost: float
