"""Routeur API principal / Main API router."""

from fastapi import APIRouter

from fleetdesk.api.auth import router as auth_router
from fleetdesk.api.exports import router as exports_router
from fleetdesk.api.fuel import router as fuel_router
from fleetdesk.api.imports import router as imports_router
from fleetdesk.api.km_records import router as km_records_router
from fleetdesk.api.service_records import router as service_records_router
from fleetdesk.api.settings import router as settings_router
from fleetdesk.api.tasks import router as tasks_router
from fleetdesk.api.tires import router as tires_router
from fleetdesk.api.vehicles import router as vehicles_router
from fleetdesk.api.visa_inspections import router as visa_inspections_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(vehicles_router, prefix="/vehicles", tags=["vehicles"])
api_router.include_router(fuel_router, prefix="/fuel", tags=["fuel"])
api_router.include_router(km_records_router, prefix="/km-records", tags=["km-records"])
api_router.include_router(tires_router, prefix="/tires", tags=["tires"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["tasks"])
api_router.include_router(service_records_router, prefix="/service-records", tags=["service-records"])
api_router.include_router(visa_inspections_router, prefix="/visa-inspections", tags=["visa-inspections"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(imports_router, prefix="/imports", tags=["imports"])
api_router.include_router(exports_router, prefix="/exports", tags=["exports"])
