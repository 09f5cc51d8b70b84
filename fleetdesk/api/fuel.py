"""Routes carburant / Fuel routes: tanks, refills, dispenses and metrics."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import (
    ListParams,
    get_current_user,
    get_inventory_service,
    get_owned,
    get_snapshot_service,
    idempotency_key,
)
from fleetdesk.database import get_db
from fleetdesk.models.fuel import FuelRecord, FuelStockEntry, FuelTank
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.fuel import (
    FuelDashboard,
    FuelDispenseCreate,
    FuelRecordRead,
    FuelRecordUpdate,
    FuelStockEntryRead,
    FuelStockEntryUpdate,
    FuelTankCreate,
    FuelTankRead,
    FuelTankUpdate,
    TankMetrics,
    TankRefillBody,
    TankRefillCreate,
)
from fleetdesk.services.inventory_service import InventoryService
from fleetdesk.services.metrics_service import MetricsService
from fleetdesk.services.snapshot_service import SnapshotService

router = APIRouter()


# ─── Cuves / Tanks ───

@router.get("/tanks/", response_model=list[FuelTankRead])
async def list_tanks(
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(FuelTank).where(FuelTank.owner_id == user.id).order_by(FuelTank.name)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(FuelTank.name.ilike(pattern), FuelTank.location.ilike(pattern)))
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.post("/tanks/", response_model=FuelTankRead, status_code=201)
async def create_tank(
    data: FuelTankCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if data.capacity <= 0:
        raise HTTPException(status_code=422, detail="Capacity must be greater than 0")
    if data.current_amount < 0 or data.counter_reading < 0:
        raise HTTPException(status_code=422, detail="Amount and counter must be greater than or equal to 0")
    tank = FuelTank(owner_id=user.id, **data.model_dump())
    db.add(tank)
    await db.flush()
    await db.refresh(tank)
    return tank


@router.get("/tanks/{tank_id}", response_model=FuelTankRead)
async def get_tank(
    tank_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_owned(db, FuelTank, user.id, tank_id, "Fuel tank")


@router.put("/tanks/{tank_id}", response_model=FuelTankRead)
async def update_tank(
    tank_id: int,
    data: FuelTankUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Modifier la fiche cuve / Edit tank details. Volume changes go through refills and dispenses."""
    tank = await get_owned(db, FuelTank, user.id, tank_id, "Fuel tank")
    updates = data.model_dump(exclude_unset=True)
    if "capacity" in updates and (updates["capacity"] is None or updates["capacity"] <= 0):
        raise HTTPException(status_code=422, detail="Capacity must be greater than 0")
    for key, value in updates.items():
        setattr(tank, key, value)
    await db.flush()
    await db.refresh(tank)
    return tank


@router.delete("/tanks/{tank_id}", status_code=204)
async def delete_tank(
    tank_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tank = await get_owned(db, FuelTank, user.id, tank_id, "Fuel tank")
    await db.delete(tank)


@router.post("/tanks/{tank_id}/refill", response_model=FuelStockEntryRead, status_code=201)
async def refill_tank(
    tank_id: int,
    data: TankRefillBody,
    key: str | None = Depends(idempotency_key),
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    """Remplissage de cuve / Tank refill."""
    refill = TankRefillCreate(tank_id=tank_id, **data.model_dump())
    return await inventory.record_tank_refill(user.id, refill, idempotency_key=key)


@router.get("/tanks/{tank_id}/metrics", response_model=TankMetrics)
async def tank_metrics(
    tank_id: int,
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    tank, entries, exits = await snapshots.tank_ledger(user.id, tank_id)
    return MetricsService.tank_metrics(tank, entries, exits)


# ─── Remplissages / Stock entries ───

@router.get("/stock-entries/", response_model=list[FuelStockEntryRead])
async def list_stock_entries(
    tank_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(FuelStockEntry)
        .where(FuelStockEntry.owner_id == user.id)
        .order_by(FuelStockEntry.date.desc(), FuelStockEntry.id.desc())
    )
    if tank_id is not None:
        query = query.where(FuelStockEntry.tank_id == tank_id)
    if date_from is not None:
        query = query.where(FuelStockEntry.date >= date_from)
    if date_to is not None:
        query = query.where(FuelStockEntry.date <= date_to)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(FuelStockEntry.supplier.ilike(pattern), FuelStockEntry.receipt_no.ilike(pattern)))
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.put("/stock-entries/{entry_id}", response_model=FuelStockEntryRead)
async def update_stock_entry(
    entry_id: int,
    data: FuelStockEntryUpdate,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    return await inventory.update_stock_entry(user.id, entry_id, data)


@router.delete("/stock-entries/{entry_id}", status_code=204)
async def delete_stock_entry(
    entry_id: int,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    await inventory.delete_stock_entry(user.id, entry_id)


# ─── Sorties / Fuel records ───

@router.get("/records/", response_model=list[FuelRecordRead])
async def list_fuel_records(
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(FuelRecord)
        .where(FuelRecord.owner_id == user.id)
        .order_by(FuelRecord.date.desc(), FuelRecord.id.desc())
    )
    if vehicle_id is not None:
        query = query.where(FuelRecord.vehicle_id == vehicle_id)
    if date_from is not None:
        query = query.where(FuelRecord.date >= date_from)
    if date_to is not None:
        query = query.where(FuelRecord.date <= date_to)
    if params.search:
        pattern = f"%{params.search}%"
        tank_ids = select(FuelTank.id).where(FuelTank.owner_id == user.id, FuelTank.name.ilike(pattern))
        vehicle_ids = select(Vehicle.id).where(Vehicle.owner_id == user.id, Vehicle.plate.ilike(pattern))
        station_ids = select(cast(Setting.id, String)).where(
            Setting.owner_id == user.id,
            Setting.type == SettingType.STATIONS.value,
            Setting.value.ilike(pattern),
        )
        query = query.where(or_(
            FuelRecord.station.ilike(pattern),
            FuelRecord.station.in_(station_ids),
            FuelRecord.tank_id.in_(tank_ids),
            FuelRecord.vehicle_id.in_(vehicle_ids),
        ))
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.post("/records/", response_model=FuelRecordRead, status_code=201)
async def dispense_fuel(
    data: FuelDispenseCreate,
    key: str | None = Depends(idempotency_key),
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    """Sortie carburant vers un vehicule / Dispense fuel to a vehicle."""
    return await inventory.record_vehicle_fuel_dispense(user.id, data, idempotency_key=key)


@router.put("/records/{record_id}", response_model=FuelRecordRead)
async def update_fuel_record(
    record_id: int,
    data: FuelRecordUpdate,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    return await inventory.update_fuel_record(user.id, record_id, data)


@router.delete("/records/{record_id}", status_code=204)
async def delete_fuel_record(
    record_id: int,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    await inventory.delete_fuel_record(user.id, record_id)


# ─── Indicateurs / Metrics ───

@router.get("/metrics", response_model=FuelDashboard)
async def fuel_metrics(
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    """Cartes du registre carburant / Fuel ledger summary cards."""
    records = await snapshots.fuel_records(user.id, vehicle_id, date_from, date_to)
    tanks = await snapshots.tanks(user.id)
    return {
        "records": MetricsService.fuel_summary(records),
        "tanks": MetricsService.tank_summary(tanks),
    }
