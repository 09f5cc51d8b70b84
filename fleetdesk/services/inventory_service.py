"""
Service de rapprochement des stocks / Inventory reconciliation service.

Seul point d'entree des ecritures multi-tables : cuves, compteurs vehicules,
stock de pneus et registres associes. Chaque operation s'execute dans une
transaction unique ; les lignes versionnees (cuve, vehicule, stock pneus)
detectent les mises a jour concurrentes et l'operation est rejouee.

Single entry point for multi-table writes: tank volume, vehicle odometer, tire
stock and their ledgers. Each operation runs in exactly one transaction;
versioned rows (tank, vehicle, tire stock) detect concurrent updates and the
whole operation is replayed from fresh reads.
"""

import asyncio
import json
import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from fleetdesk.config import settings
from fleetdesk.models.fuel import CounterType, FuelRecord, FuelStockEntry, FuelTank, StationType
from fleetdesk.models.km_record import KmRecord
from fleetdesk.models.operation_log import OperationLog
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.tire import (
    CONDITION_NEW,
    CONDITION_USED,
    InstalledSource,
    RemovedTireCondition,
    Tire,
    TireChangeRecord,
    TireStock,
)
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.schemas.fuel import FuelDispenseCreate, FuelRecordUpdate, FuelStockEntryUpdate, TankRefillCreate
from fleetdesk.schemas.km_record import KmRecordCreate
from fleetdesk.schemas.tire import TireChangeCreate
from fleetdesk.services.errors import ConcurrencyConflict, FleetError, NotFoundError, PartialWriteError, ValidationError

logger = logging.getLogger(__name__)


def compute_total(amount: float, unit_price: float) -> float:
    """Montant total / Line total (amount x unit price)."""
    return amount * unit_price


def _check_amount(amount: float) -> None:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be a number greater than 0")


def _check_unit_price(unit_price: float) -> None:
    if unit_price is None or not math.isfinite(unit_price) or unit_price < 0:
        raise ValidationError("Unit price must be a number greater than or equal to 0")


def _check_reading(value: int, label: str) -> None:
    if value is None or value < 0:
        raise ValidationError(f"{label} must be greater than or equal to 0")


_KEY_CONSTRAINT = "uq_operation_logs_owner_key"


def _is_key_collision(exc: IntegrityError) -> bool:
    """Violation de la cle d'idempotence / Unique (owner, idempotency key) violation.

    PostgreSQL nomme la contrainte, SQLite cite les colonnes.
    PostgreSQL names the constraint, SQLite lists the columns.
    """
    message = str(exc.orig)
    return _KEY_CONSTRAINT in message or "operation_logs.idempotency_key" in message


class _Steps:
    """Suivi des etapes d'une operation / Tracks the steps of one operation."""

    def __init__(self):
        self.completed: list[str] = []
        self.current: str | None = None

    @asynccontextmanager
    async def step(self, name: str):
        self.current = name
        yield
        self.completed.append(name)
        self.current = None


Body = Callable[[AsyncSession, _Steps], Awaitable[Any]]


class InventoryService:
    """Moteur de rapprochement / Reconciliation engine.

    Recoit une fabrique de sessions explicite ; aucun etat global.
    Takes an explicit session factory; no module-level state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ):
        self._session_factory = session_factory
        self._max_retries = settings.CONFLICT_MAX_RETRIES if max_retries is None else max_retries
        self._backoff = settings.CONFLICT_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds

    # ─── Transaction / retry ───

    async def _run(
        self,
        operation: str,
        owner_id: int,
        entity_type: type,
        body: Body,
        idempotency_key: str | None = None,
    ):
        """Executer body dans une transaction, rejouer sur conflit / Run body in one transaction, retry on conflict."""
        attempt = 0
        while True:
            steps = _Steps()
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        if idempotency_key:
                            previous = await self._replay(session, operation, owner_id, entity_type, idempotency_key)
                            if previous is not None:
                                return previous
                        result = await body(session, steps)
                        session.add(OperationLog(
                            owner_id=owner_id,
                            operation=operation,
                            idempotency_key=idempotency_key,
                            entity_type=entity_type.__tablename__,
                            entity_id=result.id,
                            steps=json.dumps(steps.completed),
                            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
                        ))
                        await session.flush()
                logger.info("%s committed: %s=%s owner=%s steps=%s",
                            operation, entity_type.__tablename__, result.id, owner_id, steps.completed)
                return result
            except FleetError:
                raise
            except (StaleDataError, IntegrityError) as exc:
                # IntegrityError : meme cle d'idempotence soumise deux fois en parallele
                # IntegrityError: same idempotency key submitted twice concurrently
                if isinstance(exc, IntegrityError) and not (idempotency_key and _is_key_collision(exc)):
                    partial = self._partial(operation, steps, exc)
                    if partial is None:
                        raise
                    raise partial from exc
                if attempt >= self._max_retries:
                    logger.warning("%s gave up after %d conflicts (owner=%s)", operation, attempt + 1, owner_id)
                    raise ConcurrencyConflict(operation, attempt + 1) from exc
                delay = self._backoff * (2 ** attempt)
                logger.warning("%s conflict on attempt %d, retrying in %.3fs", operation, attempt + 1, delay)
                attempt += 1
                await asyncio.sleep(delay)
            except SQLAlchemyError as exc:
                partial = self._partial(operation, steps, exc)
                if partial is None:
                    raise
                raise partial from exc

    @staticmethod
    def _partial(operation: str, steps: _Steps, exc: Exception) -> PartialWriteError | None:
        """Erreur structuree si des ecritures ont eu lieu / Structured error when writes were issued."""
        if not steps.completed:
            return None
        logger.error("%s failed at %s after %s, transaction rolled back",
                     operation, steps.current, steps.completed, exc_info=exc)
        return PartialWriteError(operation, steps.completed, steps.current, rolled_back=True, cause=exc)

    @staticmethod
    async def _replay(session: AsyncSession, operation: str, owner_id: int, entity_type: type, key: str):
        result = await session.execute(
            select(OperationLog).where(
                OperationLog.owner_id == owner_id,
                OperationLog.idempotency_key == key,
            )
        )
        log = result.scalar_one_or_none()
        if log is None:
            return None
        if log.operation != operation:
            raise ValidationError(f"Idempotency key already used for {log.operation}")
        entity = await session.get(entity_type, log.entity_id)
        if entity is None:
            raise ValidationError("Idempotency key already used; its record was deleted")
        logger.info("%s replayed from idempotency key %s", operation, key)
        return entity

    @staticmethod
    async def _get_owned(session: AsyncSession, model: type, owner_id: int, entity_id: int, label: str):
        """Lire une ligne du compte ou lever NotFoundError / Read an owner's row or raise NotFoundError."""
        if entity_id is None:
            raise ValidationError(f"{label} is required")
        result = await session.execute(
            select(model).where(model.id == entity_id, model.owner_id == owner_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(label, entity_id)
        return row

    # ─── Carburant / Fuel ───

    async def record_tank_refill(
        self, owner_id: int, data: TankRefillCreate, idempotency_key: str | None = None
    ) -> FuelStockEntry:
        """Remplissage de cuve / Tank refill: ledger entry + tank volume increase."""
        _check_amount(data.amount)
        _check_unit_price(data.unit_price)

        async def body(session: AsyncSession, steps: _Steps) -> FuelStockEntry:
            tank = await self._get_owned(session, FuelTank, owner_id, data.tank_id, "Fuel tank")

            async with steps.step("insert_stock_entry"):
                entry = FuelStockEntry(
                    owner_id=owner_id,
                    tank_id=tank.id,
                    date=data.date,
                    supplier=data.supplier,
                    fuel_type=data.fuel_type or tank.fuel_type,
                    amount=data.amount,
                    unit_price=data.unit_price,
                    total=compute_total(data.amount, data.unit_price),
                    receipt_no=data.receipt_no,
                )
                session.add(entry)
                await session.flush()

            async with steps.step("update_tank"):
                tank.current_amount += data.amount
                await session.flush()
            if tank.current_amount > tank.capacity:
                logger.warning("Tank %s above capacity after refill: %.2f/%.2f",
                               tank.id, tank.current_amount, tank.capacity)
            return entry

        return await self._run("tank_refill", owner_id, FuelStockEntry, body, idempotency_key)

    async def record_vehicle_fuel_dispense(
        self, owner_id: int, data: FuelDispenseCreate, idempotency_key: str | None = None
    ) -> FuelRecord:
        """Sortie carburant vers un vehicule / Fuel dispensed to a vehicle.

        Ordre : cuve (si interne), registre carburant, compteur vehicule + releve km.
        Order: tank (internal only), fuel ledger row, vehicle odometer + km record.
        """
        _check_amount(data.amount)
        _check_unit_price(data.unit_price)
        internal = data.station_type == StationType.INTERNAL
        if internal and data.tank_id is None:
            raise ValidationError("A fuel tank is required for internal fueling")
        if not internal and not (data.station or "").strip():
            raise ValidationError("A station is required for external fueling")
        if data.current_km is not None:
            _check_reading(data.current_km, "Current km")
        counter_type = (data.counter_type or CounterType.WITH_COUNTER) if internal else None

        async def body(session: AsyncSession, steps: _Steps) -> FuelRecord:
            vehicle = await self._get_owned(session, Vehicle, owner_id, data.vehicle_id, "Vehicle")
            if (data.current_km is not None and data.current_km < vehicle.current_km
                    and not data.is_correction):
                raise ValidationError(
                    f"Reading {data.current_km} is lower than the vehicle's current "
                    f"{vehicle.meter_unit} ({vehicle.current_km}); mark it as a correction"
                )
            station = None if internal else await self._resolve_station(session, owner_id, data.station)
            tank = None
            if internal:
                tank = await self._get_owned(session, FuelTank, owner_id, data.tank_id, "Fuel tank")
                if tank.current_amount < data.amount:
                    # Autorise, non borne / Allowed, not clamped
                    logger.warning("Tank %s overdrawn: dispensing %.2f with %.2f on hand",
                                   tank.id, data.amount, tank.current_amount)

                async with steps.step("update_tank"):
                    tank.current_amount -= data.amount
                    if counter_type == CounterType.WITH_COUNTER:
                        tank.counter_reading += data.amount
                    await session.flush()

            async with steps.step("insert_fuel_record"):
                record = FuelRecord(
                    owner_id=owner_id,
                    vehicle_id=vehicle.id,
                    date=data.date,
                    station_type=data.station_type,
                    tank_id=tank.id if tank else None,
                    station=station,
                    counter_type=counter_type,
                    fuel_type=data.fuel_type or (tank.fuel_type if tank else vehicle.fuel_type),
                    amount=data.amount,
                    unit_price=data.unit_price,
                    total=compute_total(data.amount, data.unit_price),
                    current_km=data.current_km,
                    receipt_no=data.receipt_no,
                )
                session.add(record)
                await session.flush()

            if data.current_km is not None:
                await self._apply_km_reading(session, steps, owner_id, vehicle,
                                             data.current_km, data.date, data.is_correction)
            return record

        return await self._run("fuel_dispense", owner_id, FuelRecord, body, idempotency_key)

    async def update_stock_entry(self, owner_id: int, entry_id: int, changes: FuelStockEntryUpdate) -> FuelStockEntry:
        """Modifier un remplissage / Edit a refill; total recomputed, tank adjusted by the delta."""
        updates = changes.model_dump(exclude_unset=True)

        async def body(session: AsyncSession, steps: _Steps) -> FuelStockEntry:
            entry = await self._get_owned(session, FuelStockEntry, owner_id, entry_id, "Fuel stock entry")
            amount = updates.get("amount", entry.amount)
            unit_price = updates.get("unit_price", entry.unit_price)
            _check_amount(amount)
            _check_unit_price(unit_price)
            delta = amount - entry.amount
            tank = None
            if delta:
                tank = await self._find_tank(session, owner_id, entry.tank_id)

            async with steps.step("update_stock_entry"):
                for key, value in updates.items():
                    setattr(entry, key, value)
                entry.total = compute_total(entry.amount, entry.unit_price)
                await session.flush()

            if tank is not None:
                async with steps.step("update_tank"):
                    tank.current_amount += delta
                    await session.flush()
            return entry

        return await self._run("stock_entry_update", owner_id, FuelStockEntry, body)

    async def delete_stock_entry(self, owner_id: int, entry_id: int) -> FuelStockEntry:
        """Supprimer un remplissage et retirer son volume / Delete a refill and remove its volume."""

        async def body(session: AsyncSession, steps: _Steps) -> FuelStockEntry:
            entry = await self._get_owned(session, FuelStockEntry, owner_id, entry_id, "Fuel stock entry")
            tank = await self._find_tank(session, owner_id, entry.tank_id)

            if tank is not None:
                async with steps.step("update_tank"):
                    tank.current_amount -= entry.amount
                    await session.flush()
            async with steps.step("delete_stock_entry"):
                await session.delete(entry)
                await session.flush()
            return entry

        return await self._run("stock_entry_delete", owner_id, FuelStockEntry, body)

    async def update_fuel_record(self, owner_id: int, record_id: int, changes: FuelRecordUpdate) -> FuelRecord:
        """Modifier une sortie / Edit a fuel record; total recomputed, tank adjusted by the delta."""
        updates = changes.model_dump(exclude_unset=True)

        async def body(session: AsyncSession, steps: _Steps) -> FuelRecord:
            record = await self._get_owned(session, FuelRecord, owner_id, record_id, "Fuel record")
            amount = updates.get("amount", record.amount)
            unit_price = updates.get("unit_price", record.unit_price)
            _check_amount(amount)
            _check_unit_price(unit_price)
            if record.station_type == StationType.INTERNAL:
                updates.pop("station", None)
            elif (updates.get("station") or "").strip():
                updates["station"] = await self._resolve_station(session, owner_id, updates["station"])
            else:
                updates.pop("station", None)
            delta = amount - record.amount
            tank = None
            if delta and record.station_type == StationType.INTERNAL:
                tank = await self._find_tank(session, owner_id, record.tank_id)

            async with steps.step("update_fuel_record"):
                for key, value in updates.items():
                    setattr(record, key, value)
                record.total = compute_total(record.amount, record.unit_price)
                await session.flush()

            if tank is not None:
                async with steps.step("update_tank"):
                    tank.current_amount -= delta
                    if record.counter_type == CounterType.WITH_COUNTER:
                        tank.counter_reading += delta
                    await session.flush()
            return record

        return await self._run("fuel_record_update", owner_id, FuelRecord, body)

    async def delete_fuel_record(self, owner_id: int, record_id: int) -> FuelRecord:
        """Supprimer une sortie et restituer le volume / Delete a fuel record and return its volume to the tank."""

        async def body(session: AsyncSession, steps: _Steps) -> FuelRecord:
            record = await self._get_owned(session, FuelRecord, owner_id, record_id, "Fuel record")
            tank = None
            if record.station_type == StationType.INTERNAL:
                tank = await self._find_tank(session, owner_id, record.tank_id)

            if tank is not None:
                async with steps.step("update_tank"):
                    tank.current_amount += record.amount
                    if record.counter_type == CounterType.WITH_COUNTER:
                        tank.counter_reading -= record.amount
                    await session.flush()
            async with steps.step("delete_fuel_record"):
                await session.delete(record)
                await session.flush()
            return record

        return await self._run("fuel_record_delete", owner_id, FuelRecord, body)

    @staticmethod
    async def _resolve_station(session: AsyncSession, owner_id: int, station: str) -> str:
        """Nom ou id de station -> id de parametre, sinon nom libre / Station name or id to setting id, else free text."""
        station = station.strip()
        result = await session.execute(
            select(Setting.id, Setting.value).where(
                Setting.owner_id == owner_id, Setting.type == SettingType.STATIONS.value
            )
        )
        rows = result.all()
        if any(str(sid) == station for sid, _ in rows):
            return station
        for sid, name in rows:
            if name.strip().lower() == station.lower():
                return str(sid)
        return station

    @staticmethod
    async def _find_tank(session: AsyncSession, owner_id: int, tank_id: int | None) -> FuelTank | None:
        """Cuve eventuellement supprimee / Tank that may have been deleted since."""
        if tank_id is None:
            return None
        result = await session.execute(
            select(FuelTank).where(FuelTank.id == tank_id, FuelTank.owner_id == owner_id)
        )
        tank = result.scalar_one_or_none()
        if tank is None:
            logger.warning("Tank %s no longer exists, volume not adjusted", tank_id)
        return tank

    # ─── Compteurs / Km readings ───

    async def _apply_km_reading(
        self, session: AsyncSession, steps: _Steps, owner_id: int, vehicle: Vehicle,
        km: int, date, is_correction: bool,
    ) -> KmRecord:
        async with steps.step("update_vehicle_km"):
            vehicle.current_km = km
            await session.flush()

        async with steps.step("insert_km_record"):
            km_record = KmRecord(
                owner_id=owner_id, vehicle_id=vehicle.id, km=km, date=date, is_correction=is_correction,
            )
            session.add(km_record)
            await session.flush()
        return km_record

    async def record_km(self, owner_id: int, data: KmRecordCreate) -> KmRecord:
        """Nouveau releve km / New km (or hour) reading, synced to the vehicle."""
        _check_reading(data.km, "Km")

        async def body(session: AsyncSession, steps: _Steps) -> KmRecord:
            vehicle = await self._get_owned(session, Vehicle, owner_id, data.vehicle_id, "Vehicle")
            if data.km < vehicle.current_km and not data.is_correction:
                raise ValidationError(
                    f"Reading {data.km} is lower than the vehicle's current "
                    f"{vehicle.meter_unit} ({vehicle.current_km}); mark it as a correction"
                )
            return await self._apply_km_reading(session, steps, owner_id, vehicle,
                                                data.km, data.date, data.is_correction)

        return await self._run("km_record", owner_id, KmRecord, body)

    async def delete_km_record(self, owner_id: int, record_id: int) -> KmRecord:
        """Supprimer un releve, resynchroniser le vehicule / Delete a reading and resync the vehicle."""

        async def body(session: AsyncSession, steps: _Steps) -> KmRecord:
            km_record = await self._get_owned(session, KmRecord, owner_id, record_id, "Km record")
            async with steps.step("delete_km_record"):
                await session.delete(km_record)
                await session.flush()

            result = await session.execute(
                select(KmRecord)
                .where(KmRecord.owner_id == owner_id, KmRecord.vehicle_id == km_record.vehicle_id)
                .order_by(KmRecord.date.desc(), KmRecord.id.desc())
                .limit(1)
            )
            latest = result.scalar_one_or_none()
            if latest is not None:
                km = latest.km
            else:
                # Plus aucun releve : plus haut compteur des sorties carburant, sinon 0
                # No reading left: highest fuel-record odometer, else 0
                km = (await session.execute(
                    select(func.max(FuelRecord.current_km)).where(
                        FuelRecord.owner_id == owner_id, FuelRecord.vehicle_id == km_record.vehicle_id
                    )
                )).scalar_one() or 0
                logger.warning("Vehicle %s has no km reading left, odometer reset to %s",
                               km_record.vehicle_id, km)
            vehicle = await session.get(Vehicle, km_record.vehicle_id)
            if vehicle is not None and vehicle.owner_id == owner_id:
                async with steps.step("update_vehicle_km"):
                    vehicle.current_km = km
                    await session.flush()
            return km_record

        return await self._run("km_record_delete", owner_id, KmRecord, body)

    # ─── Pneus / Tires ───

    async def record_tire_change(
        self, owner_id: int, data: TireChangeCreate, idempotency_key: str | None = None
    ) -> TireChangeRecord:
        """Changement de pneu / Tire swap.

        1. pneu depose : km et etat / removed tire: km and condition
        2. etat "stock" : retour en magasin / condition "stock": back to the shelf
        3. pneu monte depuis le stock / tire installed from stock
        4. trace du changement / change record
        """
        _check_reading(data.current_km, "Current km")
        _check_reading(data.removed_tire_km, "Removed tire km")
        from_stock = data.installed_source == InstalledSource.STOCK and data.installed_tire_id is not None

        async def body(session: AsyncSession, steps: _Steps) -> TireChangeRecord:
            vehicle = await self._get_owned(session, Vehicle, owner_id, data.vehicle_id, "Vehicle")
            result = await session.execute(
                select(Tire).where(
                    Tire.owner_id == owner_id,
                    Tire.vehicle_id == vehicle.id,
                    Tire.position == data.tire_position,
                )
            )
            tire = result.scalar_one_or_none()
            if tire is None:
                raise NotFoundError(f"Tire at position {data.tire_position}")

            removed = {
                "brand": tire.brand,
                "type": tire.type,
                "pattern": tire.pattern,
                "size": tire.size,
                "serial_number": tire.serial_number,
                "dot_number": tire.dot_number,
                "estimated_lifetime": tire.estimated_lifetime,
            }
            returns_to_stock = data.removed_tire_condition == RemovedTireCondition.STOCK

            stock_item = None
            if from_stock:
                stock_item = await self._get_owned(session, TireStock, owner_id, data.installed_tire_id, "Tire stock")
                # Le pneu depose peut reapprovisionner la meme reference
                # The removed tire may refill the very same stock item
                incoming = 1 if (returns_to_stock and removed["serial_number"] is not None
                                 and removed["serial_number"] == stock_item.serial_number) else 0
                if stock_item.quantity + incoming <= 0:
                    raise ValidationError(f"Tire stock {stock_item.id} is out of stock")

            async with steps.step("update_removed_tire"):
                tire.current_km = data.removed_tire_km
                tire.condition = data.removed_tire_condition.value
                await session.flush()

            if returns_to_stock:
                async with steps.step("return_to_stock"):
                    await self._return_to_stock(session, owner_id, removed)

            if stock_item is not None:
                async with steps.step("install_from_stock"):
                    if stock_item.quantity <= 0:
                        raise ValidationError(f"Tire stock {stock_item.id} is out of stock")
                    for key in removed:
                        setattr(tire, key, getattr(stock_item, key))
                    tire.current_km = data.current_km
                    tire.condition = CONDITION_NEW
                    tire.last_change_date = data.date
                    stock_item.quantity -= 1
                    await session.flush()

            async with steps.step("insert_tire_record"):
                change = TireChangeRecord(
                    owner_id=owner_id,
                    vehicle_id=vehicle.id,
                    date=data.date,
                    tire_position=data.tire_position,
                    change_km=data.current_km,
                    removed_tire_id=tire.id,
                    installed_tire_id=stock_item.id if stock_item else None,
                    removed_tire_km=data.removed_tire_km,
                    installed_tire_km=0,
                )
                session.add(change)
                await session.flush()
            return change

        return await self._run("tire_change", owner_id, TireChangeRecord, body, idempotency_key)

    @staticmethod
    async def _return_to_stock(session: AsyncSession, owner_id: int, removed: dict) -> TireStock:
        existing = None
        if removed["serial_number"] is not None:
            result = await session.execute(
                select(TireStock)
                .where(TireStock.owner_id == owner_id, TireStock.serial_number == removed["serial_number"])
                .order_by(TireStock.id)
                .limit(1)
            )
            existing = result.scalar_one_or_none()

        if existing is not None:
            existing.quantity += 1
            await session.flush()
            return existing

        stock = TireStock(owner_id=owner_id, condition=CONDITION_USED, quantity=1, **removed)
        session.add(stock)
        await session.flush()
        return stock

    # ─── Vehicules / Vehicles ───

    async def delete_vehicle(self, owner_id: int, vehicle_id: int) -> Vehicle:
        """Supprimer un vehicule et ses pneus / Delete a vehicle together with its mounted tires."""

        async def body(session: AsyncSession, steps: _Steps) -> Vehicle:
            vehicle = await self._get_owned(session, Vehicle, owner_id, vehicle_id, "Vehicle")
            async with steps.step("delete_tires"):
                await session.execute(
                    delete(Tire).where(Tire.vehicle_id == vehicle.id, Tire.owner_id == owner_id)
                )
            async with steps.step("delete_vehicle"):
                await session.delete(vehicle)
                await session.flush()
            return vehicle

        return await self._run("vehicle_delete", owner_id, Vehicle, body)
