"""Modele releve kilometrique / Km (or engine hour) reading model."""

import datetime as dt

from sqlalchemy import Boolean, Date, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class KmRecord(Base):
    __tablename__ = "km_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    km: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # Saisie corrective (releve inferieur autorise) / Manual correction (lower reading allowed)
    is_correction: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<KmRecord {self.date} - {self.km} - vehicle {self.vehicle_id}>"
