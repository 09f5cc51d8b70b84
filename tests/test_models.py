"""Tests des modeles / Model tests."""

from datetime import date

from fleetdesk.models.fuel import CounterType, FuelRecord, FuelTank, StationType
from fleetdesk.models.service_record import ServiceRecord
from fleetdesk.models.setting import SettingType
from fleetdesk.models.tire import TIRE_POSITIONS, InstalledSource, RemovedTireCondition, TireStock
from fleetdesk.models.vehicle import Vehicle, VehicleType, meter_unit
from fleetdesk.models.visa_record import VisaInspectionRecord, VisaRecordType


def test_vehicle_repr_and_meter_unit():
    v = Vehicle(id=1, plate="34ABC123", type=VehicleType.TRUCK)
    assert "34ABC123" in repr(v)
    assert v.meter_unit == "km"
    assert meter_unit(VehicleType.EXCAVATOR) == "hour"
    assert meter_unit("TRACTOR") == "hour"


def test_fuel_reprs():
    assert "Main" in repr(FuelTank(name="Main", capacity=1000))
    record = FuelRecord(date=date(2024, 1, 12), amount=150, vehicle_id=4)
    assert "150" in repr(record)


def test_tire_stock_repr():
    assert "x3" in repr(TireStock(brand="Michelin", size="315/80R22.5", quantity=3))


def test_enums():
    assert StationType.INTERNAL.value == "internal"
    assert CounterType.WITH_COUNTER.value == "withCounter"
    assert RemovedTireCondition.RETREAD.value == "retread"
    assert InstalledSource.OTHER.value == "other"
    assert SettingType.TASK_TAGS.value == "taskTags"
    assert "SPARE" in TIRE_POSITIONS


def test_service_and_visa_reprs():
    service = ServiceRecord(service_type="Oil change", date=date(2024, 3, 1), vehicle_id=2)
    assert "Oil change" in repr(service)
    visa = VisaInspectionRecord(type=VisaRecordType.VISA, vehicle_id=2, expiration_date=date(2025, 3, 1))
    assert "visa" in repr(visa)
    assert VisaRecordType.INSPECTION.value == "inspection"
