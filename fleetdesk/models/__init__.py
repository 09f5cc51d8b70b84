"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que create_all les détecte.
Import all models here so create_all can detect them.
"""

from fleetdesk.models.user import User
from fleetdesk.models.vehicle import Vehicle, VehicleType
from fleetdesk.models.fuel import CounterStatus, CounterType, FuelRecord, FuelStockEntry, FuelTank, StationType
from fleetdesk.models.km_record import KmRecord
from fleetdesk.models.tire import InstalledSource, RemovedTireCondition, Tire, TireChangeRecord, TireStock
from fleetdesk.models.task import Task
from fleetdesk.models.service_record import ServiceRecord
from fleetdesk.models.visa_record import VisaInspectionRecord, VisaRecordType
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.operation_log import OperationLog

__all__ = [
    "User",
    "Vehicle",
    "VehicleType",
    "FuelTank",
    "FuelStockEntry",
    "FuelRecord",
    "StationType",
    "CounterType",
    "CounterStatus",
    "KmRecord",
    "Tire",
    "TireStock",
    "TireChangeRecord",
    "RemovedTireCondition",
    "InstalledSource",
    "Task",
    "ServiceRecord",
    "VisaInspectionRecord",
    "VisaRecordType",
    "Setting",
    "SettingType",
    "OperationLog",
]
