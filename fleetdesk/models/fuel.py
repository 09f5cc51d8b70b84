"""Modeles carburant / Fuel models.

FuelTank        : cuve interne (etat mutable) / internal tank (mutable state row)
FuelStockEntry  : remplissage de cuve (ligne de registre) / tank refill (ledger row)
FuelRecord      : sortie carburant vers un vehicule / fuel dispensed to a vehicle (ledger row)
"""

import datetime as dt
import enum

from sqlalchemy import Date, Enum, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class StationType(str, enum.Enum):
    """Origine du carburant / Fuel origin."""
    INTERNAL = "internal"
    EXTERNAL = "external"


class CounterType(str, enum.Enum):
    """Passage par le compteur de la cuve / Whether the tank meter was used."""
    WITH_COUNTER = "withCounter"
    WITHOUT_COUNTER = "withoutCounter"


class CounterStatus(str, enum.Enum):
    """Etat du compteur de cuve / Tank meter status."""
    WORKING = "WORKING"
    NOT_WORKING = "NOT_WORKING"
    NEEDS_CALIBRATION = "NEEDS_CALIBRATION"
    NOT_AVAILABLE = "NOT_AVAILABLE"


class FuelTank(Base):
    """Cuve de carburant / Fuel tank."""
    __tablename__ = "fuel_tanks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    fuel_type: Mapped[str | None] = mapped_column(String(30))
    location: Mapped[str | None] = mapped_column(String(150))
    capacity: Mapped[float] = mapped_column(Float, nullable=False)
    current_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    counter_reading: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    counter_status: Mapped[CounterStatus] = mapped_column(
        Enum(CounterStatus), default=CounterStatus.WORKING
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<FuelTank {self.name} - {self.current_amount}/{self.capacity}L>"


class FuelStockEntry(Base):
    """Remplissage de cuve / Tank refill."""
    __tablename__ = "fuel_stock_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    tank_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    supplier: Mapped[str | None] = mapped_column(String(150))
    fuel_type: Mapped[str | None] = mapped_column(String(30))
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)
    receipt_no: Mapped[str | None] = mapped_column(String(50))

    def __repr__(self) -> str:
        return f"<FuelStockEntry {self.date} - {self.amount}L - tank {self.tank_id}>"


class FuelRecord(Base):
    """Sortie carburant / Fuel dispensed to a vehicle.

    tank_id renseigne si interne, station si externe.
    tank_id is set for internal records, station for external ones.
    """
    __tablename__ = "fuel_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    station_type: Mapped[StationType] = mapped_column(Enum(StationType), nullable=False)
    tank_id: Mapped[int | None] = mapped_column(Integer, index=True)
    station: Mapped[str | None] = mapped_column(String(150))
    counter_type: Mapped[CounterType | None] = mapped_column(Enum(CounterType))
    fuel_type: Mapped[str | None] = mapped_column(String(30))
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total: Mapped[float] = mapped_column(Float, nullable=False)
    current_km: Mapped[int | None] = mapped_column(Integer)
    receipt_no: Mapped[str | None] = mapped_column(String(50))

    def __repr__(self) -> str:
        return f"<FuelRecord {self.date} - {self.amount}L - vehicle {self.vehicle_id}>"
