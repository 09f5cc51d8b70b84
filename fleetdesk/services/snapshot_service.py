"""
Lecture d'instantanes du registre / Ledger snapshot reads.

Lectures idempotentes bornees par un delai, rejouees une fois sur une
nouvelle session en cas d'expiration ou de coupure.
Idempotent reads bounded by a timeout and retried once on a fresh session
after a timeout or a dropped connection.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetdesk.config import settings
from fleetdesk.models.fuel import FuelRecord, FuelStockEntry, FuelTank
from fleetdesk.models.service_record import ServiceRecord
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.tire import TireStock
from fleetdesk.models.vehicle import Vehicle
from fleetdesk.models.visa_record import VisaInspectionRecord
from fleetdesk.services.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class LookupContext:
    """Tables de correspondance nom <-> id / Name <-> id lookup tables."""
    vehicles_by_plate: dict[str, int] = field(default_factory=dict)
    tanks_by_name: dict[str, int] = field(default_factory=dict)
    stations_by_name: dict[str, int] = field(default_factory=dict)

    @property
    def plates_by_id(self) -> dict[int, str]:
        return {vid: plate for plate, vid in self.vehicles_by_plate.items()}

    @property
    def tank_names_by_id(self) -> dict[int, str]:
        return {tid: name for name, tid in self.tanks_by_name.items()}

    @property
    def station_names_by_id(self) -> dict[int, str]:
        return {sid: name for name, sid in self.stations_by_name.items()}

    def station_label(self, station: str | None) -> str | None:
        """Id de station -> nom, texte libre inchange / Station id to name; free text is returned as is."""
        if station is None:
            return None
        if station.isdigit():
            return self.station_names_by_id.get(int(station), station)
        return station


class SnapshotService:
    """Chargement des lignes pour indicateurs et exports / Row loading for metrics and exports."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], timeout: float | None = None):
        self._session_factory = session_factory
        self._timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout

    async def _read(self, fn: Callable[[AsyncSession], Awaitable[Any]]):
        for attempt in (1, 2):
            try:
                async with self._session_factory() as session:
                    return await asyncio.wait_for(fn(session), self._timeout)
            except (asyncio.TimeoutError, OperationalError) as exc:
                if attempt == 2:
                    raise
                logger.warning("Snapshot read failed (%s), retrying once", type(exc).__name__)

    async def tank_ledger(self, owner_id: int, tank_id: int) -> tuple[FuelTank, list, list]:
        """Cuve + remplissages + sorties / Tank with its refills and dispenses."""

        async def load(session: AsyncSession):
            tank = (await session.execute(
                select(FuelTank).where(FuelTank.id == tank_id, FuelTank.owner_id == owner_id)
            )).scalar_one_or_none()
            if tank is None:
                raise NotFoundError("Fuel tank", tank_id)
            entries = (await session.execute(
                select(FuelStockEntry)
                .where(FuelStockEntry.owner_id == owner_id, FuelStockEntry.tank_id == tank_id)
                .order_by(FuelStockEntry.date, FuelStockEntry.id)
            )).scalars().all()
            exits = (await session.execute(
                select(FuelRecord)
                .where(FuelRecord.owner_id == owner_id, FuelRecord.tank_id == tank_id)
                .order_by(FuelRecord.date, FuelRecord.id)
            )).scalars().all()
            return tank, list(entries), list(exits)

        return await self._read(load)

    async def tanks(self, owner_id: int) -> list[FuelTank]:
        async def load(session: AsyncSession):
            result = await session.execute(
                select(FuelTank).where(FuelTank.owner_id == owner_id).order_by(FuelTank.name)
            )
            return list(result.scalars().all())

        return await self._read(load)

    async def fuel_records(
        self,
        owner_id: int,
        vehicle_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[FuelRecord]:
        async def load(session: AsyncSession):
            query = select(FuelRecord).where(FuelRecord.owner_id == owner_id)
            if vehicle_id is not None:
                query = query.where(FuelRecord.vehicle_id == vehicle_id)
            if date_from is not None:
                query = query.where(FuelRecord.date >= date_from)
            if date_to is not None:
                query = query.where(FuelRecord.date <= date_to)
            result = await session.execute(query.order_by(FuelRecord.date, FuelRecord.id))
            return list(result.scalars().all())

        return await self._read(load)

    async def tire_stock(self, owner_id: int) -> list[TireStock]:
        async def load(session: AsyncSession):
            result = await session.execute(
                select(TireStock).where(TireStock.owner_id == owner_id).order_by(TireStock.id)
            )
            return list(result.scalars().all())

        return await self._read(load)

    async def service_records(self, owner_id: int, vehicle_id: int | None = None) -> list[ServiceRecord]:
        async def load(session: AsyncSession):
            query = select(ServiceRecord).where(ServiceRecord.owner_id == owner_id)
            if vehicle_id is not None:
                query = query.where(ServiceRecord.vehicle_id == vehicle_id)
            result = await session.execute(query.order_by(ServiceRecord.date, ServiceRecord.id))
            return list(result.scalars().all())

        return await self._read(load)

    async def visa_records(self, owner_id: int, vehicle_id: int | None = None) -> list[VisaInspectionRecord]:
        async def load(session: AsyncSession):
            query = select(VisaInspectionRecord).where(VisaInspectionRecord.owner_id == owner_id)
            if vehicle_id is not None:
                query = query.where(VisaInspectionRecord.vehicle_id == vehicle_id)
            result = await session.execute(query.order_by(VisaInspectionRecord.expiration_date))
            return list(result.scalars().all())

        return await self._read(load)

    async def lookup_context(self, owner_id: int) -> LookupContext:
        """Plaques, cuves et stations du compte / Owner's plates, tanks and stations."""

        async def load(session: AsyncSession):
            plates = await session.execute(
                select(Vehicle.plate, Vehicle.id).where(Vehicle.owner_id == owner_id)
            )
            tanks = await session.execute(
                select(FuelTank.name, FuelTank.id).where(FuelTank.owner_id == owner_id)
            )
            stations = await session.execute(
                select(Setting.value, Setting.id).where(
                    Setting.owner_id == owner_id, Setting.type == SettingType.STATIONS.value
                )
            )
            return LookupContext(
                vehicles_by_plate={plate.strip(): vid for plate, vid in plates.all()},
                tanks_by_name={name: tid for name, tid in tanks.all()},
                stations_by_name={name: sid for name, sid in stations.all()},
            )

        return await self._read(load)
