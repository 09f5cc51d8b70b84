"""Routes pneus / Tire routes: mounted tires, shelf stock and tire changes."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_inventory_service, get_owned, get_snapshot_service, idempotency_key
from fleetdesk.config import settings
from fleetdesk.database import get_db
from fleetdesk.models.tire import TIRE_POSITIONS, Tire, TireChangeRecord, TireStock
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.tire import (
    TireChangeCreate,
    TireChangeRecordRead,
    TireCreate,
    TireRead,
    TireStockCreate,
    TireStockMetrics,
    TireStockRead,
    TireStockUpdate,
    TireUpdate,
)
from fleetdesk.services.inventory_service import InventoryService
from fleetdesk.services.metrics_service import MetricsService
from fleetdesk.services.snapshot_service import SnapshotService

router = APIRouter()


def _check_stock_values(values: dict):
    if values.get("quantity") is not None and values["quantity"] < 0:
        raise HTTPException(status_code=422, detail="Quantity must be greater than or equal to 0")
    if values.get("price") is not None and values["price"] < 0:
        raise HTTPException(status_code=422, detail="Price must be greater than or equal to 0")


# ─── Stock ───

@router.get("/stock/", response_model=list[TireStockRead])
async def list_stock(
    size: str | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(TireStock).where(TireStock.owner_id == user.id).order_by(TireStock.id)
    if size:
        query = query.where(TireStock.size == size)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(
            TireStock.brand.ilike(pattern),
            TireStock.size.ilike(pattern),
            TireStock.serial_number.ilike(pattern),
        ))
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.get("/stock/metrics", response_model=TireStockMetrics)
async def stock_metrics(
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    inventory = await snapshots.tire_stock(user.id)
    return MetricsService.tire_stock_metrics(inventory, settings.LOW_STOCK_THRESHOLD)


@router.post("/stock/", response_model=TireStockRead, status_code=201)
async def create_stock(
    data: TireStockCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    dump = data.model_dump()
    _check_stock_values(dump)
    item = TireStock(owner_id=user.id, **dump)
    db.add(item)
    await db.flush()
    await db.refresh(item)
    return item


@router.put("/stock/{item_id}", response_model=TireStockRead)
async def update_stock(
    item_id: int,
    data: TireStockUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    item = await get_owned(db, TireStock, user.id, item_id, "Tire stock item")
    updates = data.model_dump(exclude_unset=True)
    if "quantity" in updates and updates["quantity"] is None:
        raise HTTPException(status_code=422, detail="Quantity is required")
    _check_stock_values(updates)
    for key, value in updates.items():
        setattr(item, key, value)
    await db.flush()
    await db.refresh(item)
    return item


@router.delete("/stock/{item_id}", status_code=204)
async def delete_stock(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    item = await get_owned(db, TireStock, user.id, item_id, "Tire stock item")
    await db.delete(item)


# ─── Changements / Tire changes ───

@router.post("/change", response_model=TireChangeRecordRead, status_code=201)
async def change_tire(
    data: TireChangeCreate,
    key: str | None = Depends(idempotency_key),
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    """Changer un pneu / Swap a mounted tire with one from stock."""
    return await inventory.record_tire_change(user.id, data, idempotency_key=key)


@router.get("/records/", response_model=list[TireChangeRecordRead])
async def list_tire_records(
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(TireChangeRecord)
        .where(TireChangeRecord.owner_id == user.id)
        .order_by(TireChangeRecord.date.desc(), TireChangeRecord.id.desc())
    )
    if vehicle_id is not None:
        query = query.where(TireChangeRecord.vehicle_id == vehicle_id)
    if date_from is not None:
        query = query.where(TireChangeRecord.date >= date_from)
    if date_to is not None:
        query = query.where(TireChangeRecord.date <= date_to)
    result = await db.execute(params.page(query))
    return result.scalars().all()


# ─── Pneus montes / Mounted tires ───

@router.get("/", response_model=list[TireRead])
async def list_tires(
    vehicle_id: int | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(Tire).where(Tire.owner_id == user.id).order_by(Tire.vehicle_id, Tire.position)
    if vehicle_id is not None:
        query = query.where(Tire.vehicle_id == vehicle_id)
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.post("/", response_model=TireRead, status_code=201)
async def create_tire(
    data: TireCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Monter un pneu sur une position libre / Mount a tire on a free position."""
    await get_owned(db, Vehicle, user.id, data.vehicle_id, "Vehicle")
    if data.position not in TIRE_POSITIONS:
        raise HTTPException(status_code=422, detail=f"Unknown tire position '{data.position}'")
    taken = await db.execute(
        select(Tire.id).where(Tire.vehicle_id == data.vehicle_id, Tire.position == data.position)
    )
    if taken.first() is not None:
        raise HTTPException(status_code=409, detail=f"Position {data.position} already has a tire")
    tire = Tire(owner_id=user.id, **data.model_dump())
    db.add(tire)
    await db.flush()
    await db.refresh(tire)
    return tire


@router.get("/{tire_id}", response_model=TireRead)
async def get_tire(
    tire_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_owned(db, Tire, user.id, tire_id, "Tire")


@router.put("/{tire_id}", response_model=TireRead)
async def update_tire(
    tire_id: int,
    data: TireUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tire = await get_owned(db, Tire, user.id, tire_id, "Tire")
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(tire, key, value)
    await db.flush()
    await db.refresh(tire)
    return tire


@router.delete("/{tire_id}", status_code=204)
async def delete_tire(
    tire_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tire = await get_owned(db, Tire, user.id, tire_id, "Tire")
    await db.delete(tire)
