"""Modele Vehicule / Vehicle model.

Le compteur current_km est une copie du dernier releve km (KmRecord).
current_km caches the latest KmRecord reading and is kept in sync by the
reconciliation service.
"""

import datetime as dt
import enum

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fleetdesk.database import Base


class VehicleType(str, enum.Enum):
    """Type de vehicule / Vehicle type."""
    CAR = "CAR"
    VAN = "VAN"
    TRUCK = "TRUCK"
    TRACTOR = "TRACTOR"
    EXCAVATOR = "EXCAVATOR"
    LOADER = "LOADER"
    OTHER = "OTHER"


# Engins suivis en heures moteur / Machines tracked in engine hours
HOUR_METER_TYPES = {VehicleType.TRACTOR, VehicleType.EXCAVATOR, VehicleType.LOADER}


def meter_unit(vehicle_type: VehicleType | str | None) -> str:
    """Unite du compteur / Meter unit label ("km" or "hour")."""
    if vehicle_type is None:
        return "km"
    return "hour" if VehicleType(vehicle_type) in HOUR_METER_TYPES else "km"


class Vehicle(Base):
    """Vehicule du parc / Fleet vehicle."""
    __tablename__ = "vehicles"
    __table_args__ = (UniqueConstraint("owner_id", "plate", name="uq_vehicles_owner_plate"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)

    # --- Identification ---
    plate: Mapped[str] = mapped_column(String(20), nullable=False)
    make: Mapped[str | None] = mapped_column(String(50))
    model: Mapped[str | None] = mapped_column(String(50))
    year: Mapped[int | None] = mapped_column(Integer)
    color: Mapped[str | None] = mapped_column(String(30))
    commercial_name: Mapped[str | None] = mapped_column(String(150))

    # --- Classification ---
    type: Mapped[VehicleType] = mapped_column(Enum(VehicleType), nullable=False, default=VehicleType.CAR)
    fuel_type: Mapped[str | None] = mapped_column(String(30))
    status: Mapped[bool] = mapped_column(Boolean, default=True)

    # --- Compteur / Meter ---
    current_km: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_service_due: Mapped[int | None] = mapped_column(Integer)

    # --- Visite technique / Inspection ---
    is_subject_to_visa: Mapped[bool] = mapped_column(Boolean, default=False)
    visa_valid_until: Mapped[dt.date | None] = mapped_column(Date)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relations
    tires: Mapped[list["Tire"]] = relationship(
        back_populates="vehicle", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def meter_unit(self) -> str:
        return meter_unit(self.type)

    def __repr__(self) -> str:
        return f"<Vehicle {self.plate}>"
