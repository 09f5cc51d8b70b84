"""Tests du moteur de rapprochement / Reconciliation engine tests."""

from datetime import date

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from fleetdesk.models.fuel import CounterType, FuelRecord, FuelStockEntry, FuelTank, StationType
from fleetdesk.models.km_record import KmRecord
from fleetdesk.models.operation_log import OperationLog
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.tire import InstalledSource, RemovedTireCondition, Tire, TireChangeRecord, TireStock
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.fuel import FuelDispenseCreate, FuelRecordUpdate, FuelStockEntryUpdate, TankRefillCreate
from fleetdesk.schemas.km_record import KmRecordCreate
from fleetdesk.schemas.tire import TireChangeCreate
from fleetdesk.services.errors import ConcurrencyConflict, NotFoundError, PartialWriteError, ValidationError
from fleetdesk.services.inventory_service import InventoryService, _is_key_collision


async def _get(session_factory, model, entity_id):
    async with session_factory() as session:
        return await session.get(model, entity_id)


async def _count(session_factory, model):
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def _refill(tank, amount=200, unit_price=30):
    return TankRefillCreate(tank_id=tank.id, date=date(2024, 1, 10), amount=amount, unit_price=unit_price)


def _dispense(vehicle, tank=None, amount=150, unit_price=31, **extra):
    fields = {
        "vehicle_id": vehicle.id,
        "date": date(2024, 1, 12),
        "amount": amount,
        "unit_price": unit_price,
        "station_type": StationType.INTERNAL if tank else StationType.EXTERNAL,
        "tank_id": tank.id if tank else None,
    }
    fields.update(extra)
    return FuelDispenseCreate(**fields)


# ─── Carburant / Fuel ───

@pytest.mark.asyncio
async def test_refill_then_dispense_scenario(inventory, session_factory, owner, tank, vehicle):
    entry = await inventory.record_tank_refill(owner.id, _refill(tank))
    assert entry.total == 6000
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 700

    record = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, current_km=10150))
    assert record.total == 4650
    assert record.counter_type == CounterType.WITH_COUNTER
    assert record.station is None

    refreshed = await _get(session_factory, FuelTank, tank.id)
    assert refreshed.current_amount == 550
    assert refreshed.counter_reading == 150
    assert (await _get(session_factory, Vehicle, vehicle.id)).current_km == 10150
    assert await _count(session_factory, KmRecord) == 1


@pytest.mark.asyncio
async def test_mass_balance_holds_over_a_sequence(inventory, session_factory, owner, tank, vehicle):
    refills = [120.5, 80, 300.25]
    dispenses = [50, 75.75, 410]
    for amount in refills:
        await inventory.record_tank_refill(owner.id, _refill(tank, amount=amount, unit_price=1.7))
    for amount in dispenses:
        await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, amount=amount))
    # Sortie externe : la cuve ne bouge pas / External fueling leaves the tank alone
    await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, amount=999, station="Shell"))

    current = (await _get(session_factory, FuelTank, tank.id)).current_amount
    assert current == pytest.approx(500 + sum(refills) - sum(dispenses))


@pytest.mark.asyncio
async def test_totals_match_amount_times_price(inventory, owner, tank, vehicle):
    entry = await inventory.record_tank_refill(owner.id, _refill(tank, amount=33.3, unit_price=1.37))
    record = await inventory.record_vehicle_fuel_dispense(
        owner.id, _dispense(vehicle, tank, amount=12.7, unit_price=1.93),
    )
    assert abs(entry.total - 33.3 * 1.37) < 1e-6
    assert abs(record.total - 12.7 * 1.93) < 1e-6


@pytest.mark.asyncio
async def test_overdraw_is_allowed_and_not_clamped(inventory, session_factory, owner, tank, vehicle):
    await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, amount=650))
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == -150


@pytest.mark.asyncio
async def test_without_counter_leaves_counter_reading(inventory, session_factory, owner, tank, vehicle):
    await inventory.record_vehicle_fuel_dispense(
        owner.id, _dispense(vehicle, tank, amount=40, counter_type=CounterType.WITHOUT_COUNTER),
    )
    refreshed = await _get(session_factory, FuelTank, tank.id)
    assert refreshed.current_amount == 460
    assert refreshed.counter_reading == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, float("nan")])
async def test_invalid_amount_rejected_before_any_write(inventory, session_factory, owner, tank, amount):
    with pytest.raises(ValidationError):
        await inventory.record_tank_refill(owner.id, _refill(tank, amount=amount))
    assert await _count(session_factory, FuelStockEntry) == 0


@pytest.mark.asyncio
async def test_internal_dispense_requires_tank(inventory, owner, vehicle):
    data = _dispense(vehicle, station_type=StationType.INTERNAL)
    with pytest.raises(ValidationError):
        await inventory.record_vehicle_fuel_dispense(owner.id, data)


@pytest.mark.asyncio
async def test_external_dispense_requires_station(inventory, owner, vehicle):
    with pytest.raises(ValidationError):
        await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle))


@pytest.mark.asyncio
async def test_odometer_regression_needs_correction_flag(inventory, session_factory, owner, tank, vehicle):
    with pytest.raises(ValidationError):
        await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, current_km=9000))
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 500

    await inventory.record_vehicle_fuel_dispense(
        owner.id, _dispense(vehicle, tank, current_km=9000, is_correction=True),
    )
    assert (await _get(session_factory, Vehicle, vehicle.id)).current_km == 9000


@pytest.mark.asyncio
async def test_edit_stock_entry_recomputes_total_and_adjusts_tank(inventory, session_factory, owner, tank):
    entry = await inventory.record_tank_refill(owner.id, _refill(tank))
    updated = await inventory.update_stock_entry(owner.id, entry.id, FuelStockEntryUpdate(amount=150, unit_price=32))
    assert updated.total == 4800
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 650


@pytest.mark.asyncio
async def test_edit_fuel_record_adjusts_tank(inventory, session_factory, owner, tank, vehicle):
    record = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, amount=100))
    updated = await inventory.update_fuel_record(owner.id, record.id, FuelRecordUpdate(amount=60))
    assert updated.total == 60 * 31
    refreshed = await _get(session_factory, FuelTank, tank.id)
    assert refreshed.current_amount == 440
    assert refreshed.counter_reading == 60


@pytest.mark.asyncio
async def test_deleting_ledger_rows_reverses_tank(inventory, session_factory, owner, tank, vehicle):
    entry = await inventory.record_tank_refill(owner.id, _refill(tank))
    record = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank))
    await inventory.delete_fuel_record(owner.id, record.id)
    await inventory.delete_stock_entry(owner.id, entry.id)
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 500
    assert await _count(session_factory, FuelRecord) == 0
    assert await _count(session_factory, FuelStockEntry) == 0



async def _delete(session_factory, model, entity_id):
    async with session_factory() as session:
        async with session.begin():
            await session.delete(await session.get(model, entity_id))


@pytest.mark.asyncio
async def test_edit_fuel_record_after_tank_deleted(inventory, session_factory, owner, tank, vehicle):
    record = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank, amount=10))
    await _delete(session_factory, FuelTank, tank.id)

    updated = await inventory.update_fuel_record(owner.id, record.id, FuelRecordUpdate(amount=20))
    assert updated.amount == 20
    assert updated.total == 20 * 31


@pytest.mark.asyncio
async def test_edit_stock_entry_after_tank_deleted(inventory, session_factory, owner, tank):
    entry = await inventory.record_tank_refill(owner.id, _refill(tank))
    await _delete(session_factory, FuelTank, tank.id)

    updated = await inventory.update_stock_entry(owner.id, entry.id, FuelStockEntryUpdate(amount=150))
    assert updated.total == 150 * 30
    assert await _count(session_factory, FuelTank) == 0


@pytest.mark.asyncio
async def test_external_station_name_resolves_to_setting_id(inventory, session_factory, owner, vehicle):
    async with session_factory() as session:
        async with session.begin():
            shell = Setting(owner_id=owner.id, type=SettingType.STATIONS.value, value="Shell Merkez")
            session.add(shell)

    known = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, station=" shell merkez "))
    by_id = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, station=str(shell.id)))
    free = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, station="Roadside Pump"))
    assert [known.station, by_id.station, free.station] == [str(shell.id), str(shell.id), "Roadside Pump"]

# ─── Transactions, conflits, idempotence / Transactions, conflicts, idempotency ───

@pytest.mark.asyncio
async def test_failed_step_rolls_back_earlier_steps(inventory, session_factory, owner, tank):
    async def body(session, steps):
        async with steps.step("insert_stock_entry"):
            session.add(FuelStockEntry(
                owner_id=owner.id, tank_id=tank.id, date=date(2024, 1, 1),
                amount=10, unit_price=1, total=10,
            ))
            await session.flush()
        async with steps.step("update_tank"):
            raise OperationalError("UPDATE fuel_tanks", {}, Exception("disk I/O error"))

    with pytest.raises(PartialWriteError) as excinfo:
        await inventory._run("tank_refill", owner.id, FuelStockEntry, body)

    err = excinfo.value
    assert err.completed_steps == ["insert_stock_entry"]
    assert err.failed_step == "update_tank"
    assert err.rolled_back is True
    assert "refresh" in err.message
    assert await _count(session_factory, FuelStockEntry) == 0
    assert await _count(session_factory, OperationLog) == 0


@pytest.mark.asyncio
async def test_stale_tank_is_retried_from_fresh_reads(inventory, session_factory, owner, tank):
    attempts = []

    async def body(session, steps):
        attempts.append(1)
        row = await session.get(FuelTank, tank.id)
        if len(attempts) == 1:
            # Un autre ecrivain passe entre lecture et ecriture / Another writer lands between read and write
            await session.execute(text("UPDATE fuel_tanks SET version = version + 1 WHERE id = :id"), {"id": tank.id})
        async with steps.step("update_tank"):
            row.current_amount += 25
            await session.flush()
        return row

    await inventory._run("tank_refill", owner.id, FuelTank, body)
    assert len(attempts) == 2
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 525


@pytest.mark.asyncio
async def test_conflict_gives_up_after_max_retries(session_factory, owner, tank):
    service = InventoryService(session_factory, max_retries=2, backoff_seconds=0)
    attempts = []

    async def body(session, steps):
        attempts.append(1)
        raise StaleDataError("fuel_tanks version mismatch")

    with pytest.raises(ConcurrencyConflict) as excinfo:
        await service._run("tank_refill", owner.id, FuelTank, body)
    assert excinfo.value.attempts == 3
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_idempotency_key_applies_once(inventory, session_factory, owner, tank):
    first = await inventory.record_tank_refill(owner.id, _refill(tank), idempotency_key="refill-1")
    second = await inventory.record_tank_refill(owner.id, _refill(tank), idempotency_key="refill-1")
    assert first.id == second.id
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 700
    assert await _count(session_factory, FuelStockEntry) == 1


@pytest.mark.asyncio
async def test_idempotency_key_reused_for_other_operation(inventory, owner, tank, vehicle):
    await inventory.record_tank_refill(owner.id, _refill(tank), idempotency_key="k-1")
    with pytest.raises(ValidationError):
        await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank), idempotency_key="k-1")



@pytest.mark.asyncio
async def test_idempotency_key_of_deleted_record_is_rejected(inventory, session_factory, owner, tank, vehicle):
    record = await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank), idempotency_key="k1")
    await inventory.delete_fuel_record(owner.id, record.id)

    with pytest.raises(ValidationError, match="deleted"):
        await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, tank), idempotency_key="k1")
    assert await _count(session_factory, FuelRecord) == 0
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 500


def test_only_the_idempotency_constraint_counts_as_key_collision():
    def error(message):
        return IntegrityError("INSERT", {}, Exception(message))

    assert _is_key_collision(error("UNIQUE constraint failed: operation_logs.owner_id, operation_logs.idempotency_key"))
    assert _is_key_collision(error('duplicate key value violates unique constraint "uq_operation_logs_owner_key"'))
    assert not _is_key_collision(error("UNIQUE constraint failed: settings.owner_id, settings.type, settings.value"))
    assert not _is_key_collision(error("FOREIGN KEY constraint failed"))

@pytest.mark.asyncio
async def test_other_owner_sees_not_found(inventory, session_factory, other_owner, tank, vehicle):
    with pytest.raises(NotFoundError):
        await inventory.record_tank_refill(other_owner.id, _refill(tank))
    with pytest.raises(NotFoundError):
        await inventory.record_km(other_owner.id, KmRecordCreate(vehicle_id=vehicle.id, km=20000, date=date(2024, 1, 1)))
    assert (await _get(session_factory, FuelTank, tank.id)).current_amount == 500


# ─── Compteurs / Km readings ───

@pytest.mark.asyncio
async def test_delete_km_record_resyncs_vehicle(inventory, session_factory, owner, vehicle):
    await inventory.record_km(owner.id, KmRecordCreate(vehicle_id=vehicle.id, km=11000, date=date(2024, 2, 1)))
    latest = await inventory.record_km(owner.id, KmRecordCreate(vehicle_id=vehicle.id, km=12000, date=date(2024, 3, 1)))
    await inventory.delete_km_record(owner.id, latest.id)
    assert (await _get(session_factory, Vehicle, vehicle.id)).current_km == 11000


@pytest.mark.asyncio
async def test_deleting_last_km_reading_falls_back_to_fuel_records(inventory, session_factory, owner, vehicle):
    await inventory.record_vehicle_fuel_dispense(owner.id, _dispense(vehicle, station="Shell", current_km=10500))
    async with session_factory() as session:
        readings = (await session.execute(select(KmRecord))).scalars().all()
    assert len(readings) == 1

    await inventory.delete_km_record(owner.id, readings[0].id)
    assert (await _get(session_factory, Vehicle, vehicle.id)).current_km == 10500


@pytest.mark.asyncio
async def test_deleting_last_km_reading_without_fuel_history_resets_odometer(inventory, session_factory, owner, vehicle):
    only = await inventory.record_km(owner.id, KmRecordCreate(vehicle_id=vehicle.id, km=11000, date=date(2024, 2, 1)))
    await inventory.delete_km_record(owner.id, only.id)
    assert (await _get(session_factory, Vehicle, vehicle.id)).current_km == 0


# ─── Pneus / Tires ───

def _change(vehicle, stock_item=None, condition=RemovedTireCondition.STOCK):
    return TireChangeCreate(
        vehicle_id=vehicle.id,
        tire_position="FL",
        date=date(2024, 4, 1),
        current_km=15000,
        removed_tire_km=45000,
        removed_tire_condition=condition,
        installed_source=InstalledSource.STOCK,
        installed_tire_id=stock_item.id if stock_item else None,
    )


async def _tire_count(session_factory, owner_id):
    async with session_factory() as session:
        mounted = (await session.execute(
            select(func.count()).select_from(Tire).where(Tire.owner_id == owner_id)
        )).scalar_one()
        shelf = (await session.execute(
            select(func.coalesce(func.sum(TireStock.quantity), 0)).where(TireStock.owner_id == owner_id)
        )).scalar_one()
    return mounted + shelf


@pytest.mark.asyncio
async def test_tire_change_round_trip(inventory, session_factory, owner, vehicle, mounted_tire, stock_item):
    before = await _tire_count(session_factory, owner.id)
    change = await inventory.record_tire_change(owner.id, _change(vehicle, stock_item))

    assert change.removed_tire_id == mounted_tire.id
    assert change.installed_tire_id == stock_item.id
    assert change.change_km == 15000
    assert change.installed_tire_km == 0

    tire = await _get(session_factory, Tire, mounted_tire.id)
    assert tire.serial_number == "NEW-1"
    assert tire.brand == "Bridgestone"
    assert tire.condition == "New"
    assert tire.current_km == 15000
    assert tire.last_change_date == date(2024, 4, 1)
    assert (await _get(session_factory, TireStock, stock_item.id)).quantity == 2

    async with session_factory() as session:
        returned = (await session.execute(
            select(TireStock).where(TireStock.serial_number == "OLD-1")
        )).scalar_one()
    assert returned.quantity == 1
    assert returned.condition == "Used"
    assert await _tire_count(session_factory, owner.id) == before


@pytest.mark.asyncio
async def test_scrapped_tire_does_not_return_to_stock(inventory, session_factory, owner, vehicle, mounted_tire, stock_item):
    await inventory.record_tire_change(owner.id, _change(vehicle, stock_item, RemovedTireCondition.SCRAP))
    async with session_factory() as session:
        rows = (await session.execute(select(TireStock).where(TireStock.serial_number == "OLD-1"))).all()
    assert rows == []
    assert await _count(session_factory, TireChangeRecord) == 1


@pytest.mark.asyncio
async def test_empty_stock_is_rejected_and_nothing_changes(inventory, session_factory, owner, vehicle, mounted_tire):
    empty = TireStock(owner_id=owner.id, brand="Pirelli", size="315/80R22.5", serial_number="EMPTY", quantity=0)
    async with session_factory() as session:
        async with session.begin():
            session.add(empty)

    with pytest.raises(ValidationError):
        await inventory.record_tire_change(owner.id, _change(vehicle, empty))

    assert (await _get(session_factory, TireStock, empty.id)).quantity == 0
    tire = await _get(session_factory, Tire, mounted_tire.id)
    assert tire.serial_number == "OLD-1"
    assert tire.current_km == 0
    assert await _count(session_factory, TireChangeRecord) == 0


@pytest.mark.asyncio
async def test_stock_quantity_never_negative(inventory, session_factory, owner, vehicle, mounted_tire, stock_item):
    for _ in range(3):
        await inventory.record_tire_change(owner.id, _change(vehicle, stock_item, RemovedTireCondition.SCRAP))
    with pytest.raises(ValidationError):
        await inventory.record_tire_change(owner.id, _change(vehicle, stock_item, RemovedTireCondition.SCRAP))
    assert (await _get(session_factory, TireStock, stock_item.id)).quantity == 0


@pytest.mark.asyncio
async def test_delete_vehicle_removes_its_tires(inventory, session_factory, owner, vehicle, mounted_tire):
    await inventory.delete_vehicle(owner.id, vehicle.id)
    assert await _get(session_factory, Vehicle, vehicle.id) is None
    assert await _count(session_factory, Tire) == 0


@pytest.mark.asyncio
async def test_same_serial_out_and_back_in_keeps_quantity(inventory, session_factory, owner, vehicle, mounted_tire):
    item = TireStock(
        owner_id=owner.id, brand="Michelin", type="Drive", size="315/80R22.5",
        serial_number="OLD-1", dot_number="2323", quantity=0,
    )
    async with session_factory() as session:
        async with session.begin():
            session.add(item)

    await inventory.record_tire_change(owner.id, _change(vehicle, item))

    assert (await _get(session_factory, TireStock, item.id)).quantity == 0
    tire = await _get(session_factory, Tire, mounted_tire.id)
    for field in ("brand", "type", "size", "serial_number", "dot_number"):
        assert getattr(tire, field) == getattr(item, field)
