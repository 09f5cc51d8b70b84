"""Schémas Véhicule / Vehicle schemas."""

from datetime import date

from pydantic import BaseModel, ConfigDict

from fleetdesk.models.vehicle import VehicleType


class VehicleBase(BaseModel):
    plate: str
    make: str | None = None
    model: str | None = None
    year: int | None = None
    color: str | None = None
    commercial_name: str | None = None
    type: VehicleType = VehicleType.CAR
    fuel_type: str | None = None
    status: bool = True
    current_km: int = 0
    next_service_due: int | None = None
    is_subject_to_visa: bool = False
    visa_valid_until: date | None = None


class VehicleCreate(VehicleBase):
    pass


class VehicleUpdate(BaseModel):
    plate: str | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = None
    color: str | None = None
    commercial_name: str | None = None
    type: VehicleType | None = None
    fuel_type: str | None = None
    status: bool | None = None
    next_service_due: int | None = None
    is_subject_to_visa: bool | None = None
    visa_valid_until: date | None = None


class VehicleRead(VehicleBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    meter_unit: str
