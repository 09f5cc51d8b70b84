"""Modeles pneus / Tire models.

Tire             : pneu monte sur un vehicule, une ligne par position
                   mounted tire, one row per (vehicle, position)
TireStock        : pneus en magasin, quantite par reference / shelf stock with quantity
TireChangeRecord : trace d'un changement de pneu / audit row of a tire swap
"""

import datetime as dt
import enum

from sqlalchemy import Date, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetdesk.database import Base


class RemovedTireCondition(str, enum.Enum):
    """Destination du pneu depose / Destination of the removed tire."""
    STOCK = "stock"
    RETREAD = "retread"
    SCRAP = "scrap"


class InstalledSource(str, enum.Enum):
    """Provenance du pneu monte / Source of the installed tire."""
    STOCK = "stock"
    OTHER = "other"


# Etats poses par les changements / Conditions written by tire changes
CONDITION_NEW = "New"
CONDITION_USED = "Used"

TIRE_POSITIONS = (
    "FL", "FR",
    "RL", "RR",
    "RLO", "RLI", "RRI", "RRO",
    "R2LO", "R2LI", "R2RI", "R2RO",
    "SPARE",
)


class Tire(Base):
    """Pneu monte / Mounted tire."""
    __tablename__ = "tires"
    __table_args__ = (UniqueConstraint("vehicle_id", "position", name="uq_tires_vehicle_position"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[str] = mapped_column(String(10), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(50))
    type: Mapped[str | None] = mapped_column(String(50))
    pattern: Mapped[str | None] = mapped_column(String(50))
    size: Mapped[str | None] = mapped_column(String(30))
    serial_number: Mapped[str | None] = mapped_column(String(50))
    dot_number: Mapped[str | None] = mapped_column(String(20))
    estimated_lifetime: Mapped[int | None] = mapped_column(Integer)
    current_km: Mapped[int] = mapped_column(Integer, default=0)
    condition: Mapped[str | None] = mapped_column(String(20))
    last_change_date: Mapped[dt.date | None] = mapped_column(Date)

    vehicle: Mapped["Vehicle"] = relationship(back_populates="tires")

    def __repr__(self) -> str:
        return f"<Tire {self.position} - vehicle {self.vehicle_id}>"


class TireStock(Base):
    """Pneu en stock / Tire in stock."""
    __tablename__ = "tire_stocks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    brand: Mapped[str | None] = mapped_column(String(50))
    type: Mapped[str | None] = mapped_column(String(50))
    pattern: Mapped[str | None] = mapped_column(String(50))
    size: Mapped[str | None] = mapped_column(String(30))
    serial_number: Mapped[str | None] = mapped_column(String(50), index=True)
    dot_number: Mapped[str | None] = mapped_column(String(20))
    estimated_lifetime: Mapped[int | None] = mapped_column(Integer)
    condition: Mapped[str | None] = mapped_column(String(20))
    price: Mapped[float | None] = mapped_column(Float)
    supplier: Mapped[str | None] = mapped_column(String(150))
    purchase_date: Mapped[dt.date | None] = mapped_column(Date)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<TireStock {self.brand} {self.size} x{self.quantity}>"


class TireChangeRecord(Base):
    """Changement de pneu / Tire change record."""
    __tablename__ = "tire_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    tire_position: Mapped[str] = mapped_column(String(10), nullable=False)
    change_km: Mapped[int] = mapped_column(Integer, nullable=False)
    removed_tire_id: Mapped[int | None] = mapped_column(Integer)
    installed_tire_id: Mapped[int | None] = mapped_column(Integer)
    removed_tire_km: Mapped[int] = mapped_column(Integer, default=0)
    installed_tire_km: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<TireChangeRecord {self.date} {self.tire_position} - vehicle {self.vehicle_id}>"
