"""Routes vehicules / Vehicle routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_inventory_service, get_owned
from fleetdesk.database import get_db
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.vehicle import VehicleCreate, VehicleRead, VehicleUpdate
from fleetdesk.services.inventory_service import InventoryService

router = APIRouter()


async def _check_plate_free(db: AsyncSession, owner_id: int, plate: str, exclude_id: int | None = None):
    query = select(Vehicle.id).where(Vehicle.owner_id == owner_id, Vehicle.plate == plate)
    if exclude_id is not None:
        query = query.where(Vehicle.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise HTTPException(status_code=409, detail=f"Plate {plate} already exists")


@router.get("/", response_model=list[VehicleRead])
async def list_vehicles(
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(Vehicle).where(Vehicle.owner_id == user.id).order_by(Vehicle.plate)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(
            Vehicle.plate.ilike(pattern),
            Vehicle.make.ilike(pattern),
            Vehicle.model.ilike(pattern),
            Vehicle.commercial_name.ilike(pattern),
        ))
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.post("/", response_model=VehicleRead, status_code=201)
async def create_vehicle(
    data: VehicleCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    dump = data.model_dump()
    dump["plate"] = dump["plate"].strip()
    if not dump["plate"]:
        raise HTTPException(status_code=422, detail="Plate is required")
    if dump["current_km"] < 0:
        raise HTTPException(status_code=422, detail="Km must be greater than or equal to 0")
    await _check_plate_free(db, user.id, dump["plate"])
    vehicle = Vehicle(owner_id=user.id, **dump)
    db.add(vehicle)
    await db.flush()
    await db.refresh(vehicle)
    return vehicle


@router.get("/{vehicle_id}", response_model=VehicleRead)
async def get_vehicle(
    vehicle_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_owned(db, Vehicle, user.id, vehicle_id, "Vehicle")


@router.put("/{vehicle_id}", response_model=VehicleRead)
async def update_vehicle(
    vehicle_id: int,
    data: VehicleUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Modifier la fiche / Edit vehicle details. The odometer moves only through km readings."""
    vehicle = await get_owned(db, Vehicle, user.id, vehicle_id, "Vehicle")
    updates = data.model_dump(exclude_unset=True)
    if "plate" in updates:
        updates["plate"] = (updates["plate"] or "").strip()
        if not updates["plate"]:
            raise HTTPException(status_code=422, detail="Plate is required")
        await _check_plate_free(db, user.id, updates["plate"], exclude_id=vehicle.id)
    for key, value in updates.items():
        setattr(vehicle, key, value)
    await db.flush()
    await db.refresh(vehicle)
    return vehicle


@router.delete("/{vehicle_id}", status_code=204)
async def delete_vehicle(
    vehicle_id: int,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    """Supprimer un vehicule et ses pneus montes / Delete a vehicle and its mounted tires."""
    await inventory.delete_vehicle(user.id, vehicle_id)
