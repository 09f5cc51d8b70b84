"""Routes import CSV/Excel / Spreadsheet import routes."""

import logging
from zipfile import BadZipFile

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from openpyxl.utils.exceptions import InvalidFileException

from fleetdesk.api.deps import get_current_user, get_import_service
from fleetdesk.models.user import User
from fleetdesk.schemas.imports import ImportResult
from fleetdesk.services.import_service import IMPORT_POLICIES, ImportService

logger = logging.getLogger(__name__)

router = APIRouter()

_POLICY_PATTERN = "^(" + "|".join(IMPORT_POLICIES) + ")$"


async def _read_grid(file: UploadFile) -> list[list]:
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")
    if not file.filename.lower().endswith((".xlsx", ".csv")):
        raise HTTPException(status_code=400, detail="Only .xlsx and .csv files are supported")

    content = await file.read()
    try:
        grid = ImportService.read_grid(file.filename, content)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, UnicodeDecodeError) as e:
        logger.warning("Unreadable import file %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=f"Error reading file: {e}")
    if not grid:
        raise HTTPException(status_code=400, detail="No data found in file")
    return grid


@router.post("/fuel-records", response_model=ImportResult)
async def import_fuel_records(
    file: UploadFile = File(...),
    policy: str | None = Query(None, pattern=_POLICY_PATTERN),
    importer: ImportService = Depends(get_import_service),
    user: User = Depends(get_current_user),
):
    """Importer l'historique carburant / Import fuel history (two template rows, then data)."""
    grid = await _read_grid(file)
    return await importer.import_fuel_records(user.id, grid, policy=policy)


@router.post("/tire-stock", response_model=ImportResult)
async def import_tire_stock(
    file: UploadFile = File(...),
    policy: str | None = Query(None, pattern=_POLICY_PATTERN),
    importer: ImportService = Depends(get_import_service),
    user: User = Depends(get_current_user),
):
    """Importer le stock pneus / Import tire stock (first row holds headers)."""
    grid = await _read_grid(file)
    return await importer.import_tire_stock(user.id, grid, policy=policy)
