"""Schemas entretien / Service record schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict


class ServiceRecordCreate(BaseModel):
    vehicle_id: int
    date: dt.date
    service_type: str
    description: str | None = None
    cost: float = 0.0
    mileage: int | None = None
    next_service_date: dt.date | None = None
    next_service_mileage: int | None = None


class ServiceRecordUpdate(BaseModel):
    vehicle_id: int | None = None
    date: dt.date | None = None
    service_type: str | None = None
    description: str | None = None
    cost: float | None = None
    mileage: int | None = None
    next_service_date: dt.date | None = None
    next_service_mileage: int | None = None


class ServiceRecordRead(ServiceRecordCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    days_left: int | None = None
    km_left: int | None = None
    progress: float = 0.0


class ServiceSummary(BaseModel):
    service_count: int
    total_cost: float
    next_service_date: dt.date | None = None
    most_serviced_vehicle_id: int | None = None
