"""Routes visites / Visa and inspection record routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_owned, get_snapshot_service
from fleetdesk.database import get_db
from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.models.visa_record import VisaInspectionRecord, VisaRecordType
from fleetdesk.schemas.visa_record import (
    ExpirySummary,
    VisaInspectionCreate,
    VisaInspectionRead,
    VisaInspectionUpdate,
)
from fleetdesk.services.metrics_service import MetricsService
from fleetdesk.services.snapshot_service import SnapshotService

router = APIRouter()

# Fenetre "a renouveler bientot" / "Renew soon" window
UPCOMING_WINDOW_DAYS = 30


def _read(record: VisaInspectionRecord) -> VisaInspectionRead:
    out = VisaInspectionRead.model_validate(record)
    out.days_left = MetricsService.days_until(record.expiration_date)
    out.progress = MetricsService.progress_percent(out.days_left)
    return out


def _check_dates(start, expires):
    if start is not None and expires is not None and expires < start:
        raise HTTPException(status_code=422, detail="Expiration date must not be before the visit date")


@router.get("/", response_model=list[VisaInspectionRead])
async def list_visa_inspections(
    vehicle_id: int | None = None,
    type: VisaRecordType | None = None,
    expired: bool | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        select(VisaInspectionRecord)
        .where(VisaInspectionRecord.owner_id == user.id)
        .order_by(VisaInspectionRecord.expiration_date, VisaInspectionRecord.id)
    )
    if vehicle_id is not None:
        query = query.where(VisaInspectionRecord.vehicle_id == vehicle_id)
    if type is not None:
        query = query.where(VisaInspectionRecord.type == type)
    if params.search:
        query = query.where(VisaInspectionRecord.notes.ilike(f"%{params.search}%"))
    result = await db.execute(params.page(query))
    rows = [_read(r) for r in result.scalars().all()]
    if expired is not None:
        rows = [r for r in rows if (r.days_left < 0) == expired]
    return rows


@router.get("/metrics", response_model=ExpirySummary)
async def visa_metrics(
    vehicle_id: int | None = None,
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    """Cartes visites / Visa and inspection cards."""
    records = await snapshots.visa_records(user.id, vehicle_id)
    return MetricsService.expiry_summary(records, window_days=UPCOMING_WINDOW_DAYS)


@router.post("/", response_model=VisaInspectionRead, status_code=201)
async def create_visa_inspection(
    data: VisaInspectionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if data.cost < 0:
        raise HTTPException(status_code=422, detail="Cost must be greater than or equal to 0")
    _check_dates(data.date, data.expiration_date)
    await get_owned(db, Vehicle, user.id, data.vehicle_id, "Vehicle")
    record = VisaInspectionRecord(owner_id=user.id, **data.model_dump())
    db.add(record)
    await db.flush()
    await db.refresh(record)
    return _read(record)


@router.get("/{record_id}", response_model=VisaInspectionRead)
async def get_visa_inspection(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _read(await get_owned(db, VisaInspectionRecord, user.id, record_id, "Visa/inspection record"))


@router.put("/{record_id}", response_model=VisaInspectionRead)
async def update_visa_inspection(
    record_id: int,
    data: VisaInspectionUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await get_owned(db, VisaInspectionRecord, user.id, record_id, "Visa/inspection record")
    updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "notes"}
    if updates.get("cost") is not None and updates["cost"] < 0:
        raise HTTPException(status_code=422, detail="Cost must be greater than or equal to 0")
    _check_dates(updates.get("date", record.date), updates.get("expiration_date", record.expiration_date))
    if "vehicle_id" in updates:
        await get_owned(db, Vehicle, user.id, updates["vehicle_id"], "Vehicle")
    for key, value in updates.items():
        setattr(record, key, value)
    await db.flush()
    await db.refresh(record)
    return _read(record)


@router.delete("/{record_id}", status_code=204)
async def delete_visa_inspection(
    record_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await get_owned(db, VisaInspectionRecord, user.id, record_id, "Visa/inspection record")
    await db.delete(record)
