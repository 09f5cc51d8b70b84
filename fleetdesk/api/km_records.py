"""Routes releves km / Km (or hour-meter) reading routes."""

import datetime as dt

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_inventory_service
from fleetdesk.database import get_db
from fleetdesk.models.km_record import KmRecord
from fleetdesk.models.user import User
from fleetdesk.schemas.km_record import KmRecordCreate, KmRecordRead
from fleetdesk.services.inventory_service import InventoryService

router = APIRouter()


@router.get("/", response_model=list[KmRecordRead])
async def list_km_records(
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(KmRecord)
        .where(KmRecord.owner_id == user.id)
        .order_by(KmRecord.date.desc(), KmRecord.id.desc())
    )
    if vehicle_id is not None:
        query = query.where(KmRecord.vehicle_id == vehicle_id)
    if date_from is not None:
        query = query.where(KmRecord.date >= date_from)
    if date_to is not None:
        query = query.where(KmRecord.date <= date_to)
    result = await db.execute(params.page(query))
    return result.scalars().all()


@router.post("/", response_model=KmRecordRead, status_code=201)
async def create_km_record(
    data: KmRecordCreate,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    return await inventory.record_km(user.id, data)


@router.delete("/{record_id}", status_code=204)
async def delete_km_record(
    record_id: int,
    inventory: InventoryService = Depends(get_inventory_service),
    user: User = Depends(get_current_user),
):
    await inventory.delete_km_record(user.id, record_id)
