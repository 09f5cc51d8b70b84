"""Routes Export CSV/Excel / Export API routes."""

import datetime as dt
import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from fleetdesk.api.deps import get_current_user, get_snapshot_service
from fleetdesk.models.user import User
from fleetdesk.services.export_service import FUEL_EXPORT_HEADER, ExportService
from fleetdesk.services.snapshot_service import SnapshotService

router = APIRouter()

_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/fuel-records")
async def export_fuel_records(
    format: str = Query("xlsx", pattern="^(csv|xlsx)$"),
    vehicle_id: int | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    snapshots: SnapshotService = Depends(get_snapshot_service),
    user: User = Depends(get_current_user),
):
    """Exporter le registre carburant / Export the fuel ledger to CSV or XLSX."""
    records = await snapshots.fuel_records(user.id, vehicle_id, date_from, date_to)
    context = await snapshots.lookup_context(user.id)
    rows = ExportService.export_fuel_records(records, context)

    if format == "csv":
        return _attachment(ExportService.to_csv(FUEL_EXPORT_HEADER, rows), "text/csv; charset=utf-8", "fuel-records.csv")
    content = ExportService.to_xlsx(FUEL_EXPORT_HEADER, rows, sheet_name="Fuel records")
    return _attachment(content, _XLSX_MEDIA_TYPE, "fuel-records.xlsx")


@router.get("/fuel-records/template")
async def fuel_records_template(user: User = Depends(get_current_user)):
    """Modele d'import carburant / Fuel import template."""
    return _attachment(ExportService.fuel_import_template(), _XLSX_MEDIA_TYPE, "fuel-records-template.xlsx")
