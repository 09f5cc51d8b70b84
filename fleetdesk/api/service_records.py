"""Routes entretien / Service and maintenance record routes."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_owned, get_snapshot_service
from fleetdesk.database import get_db
from fleetdesk.models.service_record import ServiceRecord
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.service_record import (
    ServiceRecordCreate,
    ServiceRecordRead,
    ServiceRecordUpdate,
    ServiceSummary,
)
from fleetdesk.services.metrics_service import MetricsService
from fleetdesk.services.snapshot_service import SnapshotService

router = APIRouter()


def _read(record: ServiceRecord, current_km: int | None) -> ServiceRecordRead:
    out = ServiceRecordRead.model_validate(record)
    out.days_left = MetricsService.days_until(record.next_service_date)
    out.km_left = MetricsService.remaining_km(record.next_service_mileage, current_km)
    out.progress = MetricsService.progress_percent(out.days_left)
    return out


def _check_values(values: dict):
    if values.get("cost") is not None and values["cost"] < 0:
        raise HTTPException(status_code=422, detail="Cost must be greater than or equal to 0")
    for key in ("mileage", "next_service_mileage"):
        if values.get(key) is not None and values[key] < 0:
            raise HTTPException(status_code=422, detail="Mileage must be greater than or equal to 0")
    if "service_type" in values and not (values["service_type"] or "").strip():
        raise HTTPException(status_code=422, detail="Service type is required")


@router.get("/", response_model=list[ServiceRecordRead])
async def list_service_records(
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(ServiceRecord)
        .where(ServiceRecord.owner_id == user.id)
        .order_by(ServiceRecord.date.desc(), ServiceRecord.id.desc())
    )
    if vehicle_id is not None:
        query = query.where(ServiceRecord.vehicle_id == vehicle_id)
    if date_from is not None:
        query = query.where(ServiceRecord.date >= date_from)
    if date_to is not None:
        query = query.where(ServiceRecord.date <= date_to)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(
            ServiceRecord.service_type.ilike(pattern), ServiceRecord.description.ilike(pattern),
        ))
    records = (await db.execute(params.page(query))).scalars().all()

    km = await db.execute(select(Vehicle.id, Vehicle.current_km).where(Vehicle.owner_id == user.id))
    km_by_vehicle = dict(km.all())
    return [_read(r, km_by_vehicle.get(r.vehicle_id)) for r in records]


@router.get("/metrics", response_model=ServiceSummary)
async def service_metrics(
    vehicle_id: int | None = None,
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    """Cartes entretien / Service summary cards."""
    return MetricsService.service_summary(await snapshots.service_records(user.id, vehicle_id))


@router.post("/", response_model=ServiceRecordRead, status_code=201)
async def create_service_record(
    data: ServiceRecordCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    values = data.model_dump()
    _check_values(values)
    vehicle = await get_owned(db, Vehicle, user.id, data.vehicle_id, "Vehicle")
    record = ServiceRecord(owner_id=user.id, **values)
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return _read(record, vehicle.current_km)


@router.get("/{record_id}", response_model=ServiceRecordRead)
async def get_service_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await get_owned(db, ServiceRecord, user.id, record_id, "Service record")
    vehicle = await db.get(Vehicle, record.vehicle_id)
    return _read(record, vehicle.current_km if vehicle else None)


@router.put("/{record_id}", response_model=ServiceRecordRead)
async def update_service_record(
    record_id: int,
    data: ServiceRecordUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await get_owned(db, ServiceRecord, user.id, record_id, "Service record")
    updates = data.model_dump(exclude_unset=True)
    _check_values(updates)
    if updates.get("vehicle_id") is not None:
        await get_owned(db, Vehicle, user.id, updates["vehicle_id"], "Vehicle")
    for key, value in updates.items():
        if value is None and key in ("vehicle_id", "date", "service_type"):
            continue
        setattr(record, key, value)
    await db.flush()
    await db.refresh(record)
    vehicle = await db.get(Vehicle, record.vehicle_id)
    return _read(record, vehicle.current_km if vehicle else None)


@router.delete("/{record_id}", status_code=204)
async def delete_service_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await get_owned(db, ServiceRecord, user.id, record_id, "Service record")
    await db.delete(record)
