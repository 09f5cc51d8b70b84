"""Schemas pneus / Tire schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict

from fleetdesk.models.tire import InstalledSource, RemovedTireCondition


# --- Pneus montes / Mounted tires ---

class TireBase(BaseModel):
    vehicle_id: int
    position: str
    brand: str | None = None
    type: str | None = None
    pattern: str | None = None
    size: str | None = None
    serial_number: str | None = None
    dot_number: str | None = None
    estimated_lifetime: int | None = None
    current_km: int = 0
    condition: str | None = None


class TireCreate(TireBase):
    pass


class TireUpdate(BaseModel):
    brand: str | None = None
    type: str | None = None
    pattern: str | None = None
    size: str | None = None
    serial_number: str | None = None
    dot_number: str | None = None
    estimated_lifetime: int | None = None
    condition: str | None = None


class TireRead(TireBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    last_change_date: dt.date | None = None


# --- Stock ---

class TireStockBase(BaseModel):
    brand: str | None = None
    type: str | None = None
    pattern: str | None = None
    size: str | None = None
    serial_number: str | None = None
    dot_number: str | None = None
    estimated_lifetime: int | None = None
    condition: str | None = None
    price: float | None = None
    supplier: str | None = None
    purchase_date: dt.date | None = None
    quantity: int = 1


class TireStockCreate(TireStockBase):
    pass


class TireStockUpdate(BaseModel):
    brand: str | None = None
    type: str | None = None
    pattern: str | None = None
    size: str | None = None
    serial_number: str | None = None
    dot_number: str | None = None
    estimated_lifetime: int | None = None
    condition: str | None = None
    price: float | None = None
    supplier: str | None = None
    purchase_date: dt.date | None = None
    quantity: int | None = None


class TireStockRead(TireStockBase):
    model_config = ConfigDict(from_attributes=True)
    id: int


class TireStockMetrics(BaseModel):
    total_tires: int
    total_value: float
    most_common_size: str | None = None
    low_stock_items: int


# --- Changement / Tire change ---

class TireChangeCreate(BaseModel):
    vehicle_id: int
    tire_position: str
    date: dt.date
    current_km: int
    removed_tire_km: int
    removed_tire_condition: RemovedTireCondition
    installed_source: InstalledSource = InstalledSource.STOCK
    installed_tire_id: int | None = None


class TireChangeRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    vehicle_id: int
    date: dt.date
    tire_position: str
    change_km: int
    removed_tire_id: int | None = None
    installed_tire_id: int | None = None
    removed_tire_km: int
    installed_tire_km: int
