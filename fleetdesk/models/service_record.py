"""Modele entretien / Service and maintenance record model."""

import datetime as dt

from sqlalchemy import Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class ServiceRecord(Base):
    """Passage atelier avec prochaine echeance / Workshop visit with its next due date or mileage."""
    __tablename__ = "service_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    service_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    cost: Mapped[float] = mapped_column(Float, default=0.0)
    mileage: Mapped[int | None] = mapped_column(Integer)

    # --- Prochaine echeance / Next service ---
    next_service_date: Mapped[dt.date | None] = mapped_column(Date)
    next_service_mileage: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<ServiceRecord {self.service_type} - {self.date} - vehicle {self.vehicle_id}>"
