"""Schemas carburant / Fuel schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict

from fleetdesk.models.fuel import CounterStatus, CounterType, StationType


# --- Tanks ---

class FuelTankCreate(BaseModel):
    name: str
    fuel_type: str | None = None
    location: str | None = None
    capacity: float
    current_amount: float = 0.0
    counter_reading: float = 0.0
    counter_status: CounterStatus = CounterStatus.WORKING


class FuelTankUpdate(BaseModel):
    name: str | None = None
    fuel_type: str | None = None
    location: str | None = None
    capacity: float | None = None
    counter_status: CounterStatus | None = None


class FuelTankRead(FuelTankCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int


# --- Stock entries (refills) ---

class TankRefillBody(BaseModel):
    date: dt.date
    amount: float
    unit_price: float
    supplier: str | None = None
    fuel_type: str | None = None
    receipt_no: str | None = None


class TankRefillCreate(TankRefillBody):
    tank_id: int


class FuelStockEntryUpdate(BaseModel):
    date: dt.date | None = None
    amount: float | None = None
    unit_price: float | None = None
    supplier: str | None = None
    receipt_no: str | None = None


class FuelStockEntryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    tank_id: int
    date: dt.date
    supplier: str | None = None
    fuel_type: str | None = None
    amount: float
    unit_price: float
    total: float
    receipt_no: str | None = None


# --- Fuel records (dispense) ---

class FuelDispenseCreate(BaseModel):
    vehicle_id: int
    date: dt.date
    amount: float
    unit_price: float
    station_type: StationType
    tank_id: int | None = None
    station: str | None = None
    counter_type: CounterType | None = None
    fuel_type: str | None = None
    current_km: int | None = None
    receipt_no: str | None = None
    # Releve inferieur volontaire / Deliberate lower odometer reading
    is_correction: bool = False


class FuelRecordUpdate(BaseModel):
    date: dt.date | None = None
    amount: float | None = None
    unit_price: float | None = None
    station: str | None = None
    receipt_no: str | None = None


class FuelRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    vehicle_id: int
    date: dt.date
    station_type: StationType
    tank_id: int | None = None
    station: str | None = None
    counter_type: CounterType | None = None
    fuel_type: str | None = None
    amount: float
    unit_price: float
    total: float
    current_km: int | None = None
    receipt_no: str | None = None


# --- Indicateurs / Metrics ---

class TankMetrics(BaseModel):
    tank_id: int
    fill_rate: float
    average_price: float
    monthly_average_consumption: float
    total_in: float
    total_out: float
    last_entry_date: dt.date | None = None
    last_exit_date: dt.date | None = None


class FuelSummary(BaseModel):
    record_count: int
    total_amount: float
    total_cost: float
    average_unit_price: float
    monthly_average_consumption: float
    most_used_vehicle_id: int | None = None


class TankSummary(BaseModel):
    tank_count: int
    total_capacity: float
    total_current_amount: float
    most_common_fuel_type: str | None = None


class FuelDashboard(BaseModel):
    records: FuelSummary
    tanks: TankSummary
